"""Audit service - record and query actions."""

import logging
from datetime import date, timedelta

from django.utils import timezone

from visitman.conf import visitman_settings
from visitman.contrib.audit.models import AuditEntry

logger = logging.getLogger(__name__)


class AuditService:
    """
    Service for the audit trail.

    Uses @classmethod for extensibility (consistent with other contrib services).
    """

    @classmethod
    def log_event(
        cls,
        action_type: str,
        action_category: str = "system",
        entity=None,
        description: str = "",
        old_values: dict | None = None,
        new_values: dict | None = None,
        metadata: dict | None = None,
        actor: str = "",
        ip_address: str | None = None,
    ) -> AuditEntry:
        """
        Record an action.

        Args:
            action_type: e.g. guest_registered, visit_signed_in
            action_category: ActionCategory value
            entity: Affected model instance (optional)
            description: Short human summary
            old_values / new_values: Changed fields before and after
            metadata: Extra data as JSON
            actor: Username performing the action
            ip_address: Client IP when known

        Returns:
            Created AuditEntry
        """
        entry = AuditEntry.objects.create(
            action_type=action_type,
            action_category=action_category,
            entity_type=type(entity).__name__ if entity is not None else "",
            entity_id=str(entity.pk) if entity is not None else "",
            description=description[:255],
            old_values=old_values or {},
            new_values=new_values or {},
            metadata=metadata or {},
            actor=actor,
            ip_address=ip_address,
        )
        logger.debug("Audit: %s %s:%s", action_type, entry.entity_type, entry.entity_id)
        return entry

    @classmethod
    def get_logs(
        cls,
        action_category: str | None = None,
        action_type: str | None = None,
        entity_type: str | None = None,
        entity_id=None,
        actor: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[list[AuditEntry], int]:
        """
        Filtered audit entries, newest first.

        Returns:
            Tuple of (entries on the requested page, total matching)
        """
        qs = AuditEntry.objects.all()
        if action_category:
            qs = qs.filter(action_category=action_category)
        if action_type:
            qs = qs.filter(action_type=action_type)
        if entity_type:
            qs = qs.filter(entity_type=entity_type)
        if entity_id is not None:
            qs = qs.filter(entity_id=str(entity_id))
        if actor:
            qs = qs.filter(actor=actor)
        if date_from:
            qs = qs.filter(created_at__date__gte=date_from)
        if date_to:
            qs = qs.filter(created_at__date__lte=date_to)

        total = qs.count()
        offset = (max(page, 1) - 1) * per_page
        return list(qs[offset : offset + per_page]), total

    @classmethod
    def cleanup_old_logs(cls, days: int | None = None) -> int:
        """Delete entries older than `days` (AUDIT_CLEANUP_DAYS by default)."""
        days = days if days is not None else visitman_settings.AUDIT_CLEANUP_DAYS
        cutoff = timezone.now() - timedelta(days=days)
        deleted, _ = AuditEntry.objects.filter(created_at__lt=cutoff).delete()
        logger.info("Cleaned up %d audit entries older than %d days", deleted, days)
        return deleted
