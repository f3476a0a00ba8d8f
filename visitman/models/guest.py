"""Guest model (CORE).

A guest is an external visitor. The same table holds day guests,
accommodation guests and suppliers, separated by guest_type; phone and ID
number are unique within a type.

Guest.status is the standing of the person (active/suspended/banned).
Visit.status is the decision for one booking. A guest suspended for
exceeding the visit allowance carries status_reason=visit_limit, which is
what the periodic limit resets look for.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class GuestType(models.TextChoices):
    GUEST = "guest", _("Guest")
    ACCOMMODATION = "accommodation", _("Accommodation guest")
    SUPPLIER = "supplier", _("Supplier")


class GuestStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    SUSPENDED = "suspended", _("Suspended")
    BANNED = "banned", _("Banned")


class StatusReason(models.TextChoices):
    MANUAL = "manual", _("Set by staff")
    VISIT_LIMIT = "visit_limit", _("Visit limit reached")


class Guest(models.Model):
    """Registered visitor."""

    guest_type = models.CharField(
        _("type"),
        max_length=20,
        choices=GuestType.choices,
        default=GuestType.GUEST,
        db_index=True,
    )

    first_name = models.CharField(_("first name"), max_length=255)
    last_name = models.CharField(_("last name"), max_length=255)
    email = models.EmailField(_("email"), blank=True, db_index=True)
    phone_number = models.CharField(_("phone number"), max_length=20)
    id_number = models.CharField(
        _("ID number"),
        max_length=100,
        null=True,
        blank=True,
        help_text=_("National ID or passport number"),
    )

    status = models.CharField(
        _("status"),
        max_length=20,
        choices=GuestStatus.choices,
        default=GuestStatus.ACTIVE,
        db_index=True,
    )
    status_reason = models.CharField(
        _("status reason"),
        max_length=20,
        choices=StatusReason.choices,
        default=StatusReason.MANUAL,
    )

    receive_emails = models.BooleanField(_("receive emails"), default=False)
    receive_messages = models.BooleanField(_("receive SMS"), default=False)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("guest")
        verbose_name_plural = _("guests")
        ordering = ["first_name", "last_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["guest_type", "phone_number"],
                name="visitman_unique_guest_phone",
            ),
            models.UniqueConstraint(
                fields=["guest_type", "id_number"],
                name="visitman_unique_guest_id_number",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.phone_number})"

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == GuestStatus.ACTIVE

    @property
    def is_limit_suspended(self) -> bool:
        return (
            self.status == GuestStatus.SUSPENDED
            and self.status_reason == StatusReason.VISIT_LIMIT
        )

    @property
    def is_restricted(self) -> bool:
        """Banned, or suspended by staff. Limit suspensions only block new bookings."""
        return not self.is_active and not self.is_limit_suspended

    def save(self, *args, **kwargs):
        if self.phone_number:
            from visitman.utils import normalize_phone

            self.phone_number = normalize_phone(self.phone_number)
        if self.email:
            self.email = self.email.lower().strip()
        # Empty ID numbers must stay NULL so the unique constraint ignores them
        if not self.id_number:
            self.id_number = None
        super().save(*args, **kwargs)
