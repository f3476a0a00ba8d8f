"""AuditEntry model - who did what to which record."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class ActionCategory(models.TextChoices):
    AUTHENTICATION = "authentication", _("Authentication")
    GUEST = "guest", _("Guest")
    VISIT = "visit", _("Visit")
    MEMBER = "member", _("Member")
    RECIPROCATION = "reciprocation", _("Reciprocation")
    SYSTEM = "system", _("System")


class AuditEntry(models.Model):
    """
    Single recorded action.

    entity_type/entity_id point at the affected record without a foreign
    key, so entries outlive deleted guests and visits.
    """

    action_type = models.CharField(_("action"), max_length=50, db_index=True)
    action_category = models.CharField(
        _("category"),
        max_length=20,
        choices=ActionCategory.choices,
        default=ActionCategory.SYSTEM,
        db_index=True,
    )
    entity_type = models.CharField(_("entity type"), max_length=50, blank=True)
    entity_id = models.CharField(_("entity ID"), max_length=50, blank=True)
    description = models.CharField(_("description"), max_length=255, blank=True)

    old_values = models.JSONField(_("old values"), default=dict, blank=True)
    new_values = models.JSONField(_("new values"), default=dict, blank=True)
    metadata = models.JSONField(_("metadata"), default=dict, blank=True)

    actor = models.CharField(
        _("actor"),
        max_length=150,
        blank=True,
        help_text=_("Username, or empty for system actions"),
    )
    ip_address = models.GenericIPAddressField(_("IP address"), null=True, blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = _("audit entry")
        verbose_name_plural = _("audit entries")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="vm_audit_entity_idx"),
            models.Index(
                fields=["action_category", "-created_at"],
                name="vm_audit_category_created_idx",
            ),
        ]

    def __str__(self):
        return f"[{self.action_type}] {self.entity_type}:{self.entity_id}"
