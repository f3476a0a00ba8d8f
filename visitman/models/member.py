"""Member model - club members who host guests."""

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Member(models.Model):
    """
    Club member.

    Members host guests: every regular guest visit names a host, and the
    host's daily guest allowance is enforced by the visits service.
    """

    member_number = models.CharField(
        _("member number"),
        max_length=50,
        unique=True,
    )
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="visitman_member",
        null=True,
        blank=True,
        verbose_name=_("user account"),
    )

    first_name = models.CharField(_("first name"), max_length=100)
    last_name = models.CharField(_("last name"), max_length=100, blank=True)
    email = models.EmailField(_("email"), blank=True)
    phone_number = models.CharField(_("phone number"), max_length=20, blank=True, db_index=True)

    # Communication preferences
    receive_messages = models.BooleanField(_("receive SMS"), default=False)
    receive_emails = models.BooleanField(_("receive emails"), default=False)

    is_active = models.BooleanField(_("active"), default=True, db_index=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("member")
        verbose_name_plural = _("members")
        ordering = ["first_name", "last_name"]

    def __str__(self):
        return f"{self.name} ({self.member_number})"

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def save(self, *args, **kwargs):
        if self.phone_number:
            from visitman.utils import normalize_phone

            self.phone_number = normalize_phone(self.phone_number)
        if self.email:
            self.email = self.email.lower().strip()
        super().save(*args, **kwargs)
