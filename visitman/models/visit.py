"""Visit model - one dated attendance of a guest."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class VisitStatus(models.TextChoices):
    APPROVED = "approved", _("Approved")
    UNAPPROVED = "unapproved", _("Unapproved")
    CANCELLED = "cancelled", _("Cancelled")
    SUSPENDED = "suspended", _("Suspended")
    BANNED = "banned", _("Banned")


class Visit(models.Model):
    """
    Guest visit.

    host is empty for courtesy visits (guests admitted on the club's own
    invitation); those do not count against any member's daily allowance.
    """

    guest = models.ForeignKey(
        "visitman.Guest",
        on_delete=models.CASCADE,
        related_name="visits",
        verbose_name=_("guest"),
    )
    host = models.ForeignKey(
        "visitman.Member",
        on_delete=models.PROTECT,
        related_name="hosted_visits",
        null=True,
        blank=True,
        verbose_name=_("host"),
    )
    courtesy = models.CharField(_("courtesy"), max_length=255, blank=True)

    visit_date = models.DateField(_("visit date"), db_index=True)
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=VisitStatus.choices,
        default=VisitStatus.APPROVED,
        db_index=True,
    )

    sign_in_time = models.DateTimeField(_("signed in at"), null=True, blank=True)
    sign_out_time = models.DateTimeField(_("signed out at"), null=True, blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("visit")
        verbose_name_plural = _("visits")
        ordering = ["-visit_date", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["guest", "host", "visit_date"],
                name="visitman_unique_guest_visit_date",
            ),
        ]
        indexes = [
            models.Index(fields=["host", "visit_date"], name="vm_visit_host_date_idx"),
            models.Index(fields=["guest", "visit_date"], name="vm_visit_guest_date_idx"),
        ]

    def __str__(self):
        return f"{self.guest.name} on {self.visit_date} [{self.status}]"

    @property
    def is_signed_in(self) -> bool:
        return self.sign_in_time is not None and self.sign_out_time is None
