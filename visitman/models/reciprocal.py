"""Reciprocating clubs, their members, and member visits."""

from django.db import models
from django.utils.translation import gettext_lazy as _

from visitman.models.guest import GuestStatus, StatusReason
from visitman.models.visit import VisitStatus


class ClubStatus(models.TextChoices):
    ACTIVE = "active", _("Active")
    SUSPENDED = "suspended", _("Suspended")
    BANNED = "banned", _("Banned")


class VisitPurpose(models.TextChoices):
    GOLF_TOURNAMENT = "golf_tournament", _("Golf tournament")
    CASUAL_VISIT = "casual_visit", _("Casual visit")


class ReciprocatingClub(models.Model):
    """Partner club with a reciprocal membership arrangement."""

    name = models.CharField(_("club name"), max_length=255, db_index=True)
    email = models.EmailField(_("email"), blank=True)
    phone = models.CharField(_("phone"), max_length=20, blank=True)
    website = models.URLField(_("website"), blank=True)
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=ClubStatus.choices,
        default=ClubStatus.ACTIVE,
        db_index=True,
    )
    notes = models.TextField(_("notes"), blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("reciprocating club")
        verbose_name_plural = _("reciprocating clubs")
        ordering = ["name"]

    def __str__(self):
        return self.name


class ReciprocatingMember(models.Model):
    """
    Member of a partner club, tracked separately from guests.

    member_number and club are often unknown at registration and are
    captured on the first sign-in.
    """

    first_name = models.CharField(_("first name"), max_length=255)
    last_name = models.CharField(_("last name"), max_length=255)
    email = models.EmailField(_("email"), blank=True)
    phone_number = models.CharField(_("phone number"), max_length=20, blank=True)
    id_number = models.CharField(_("ID number"), max_length=100, db_index=True)

    member_number = models.CharField(
        _("reciprocating member number"),
        max_length=100,
        null=True,
        blank=True,
        unique=True,
    )
    club = models.ForeignKey(
        ReciprocatingClub,
        on_delete=models.CASCADE,
        related_name="members",
        null=True,
        blank=True,
        verbose_name=_("club"),
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

    created_at = models.DateTimeField(_("created at"), auto_now_add=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("reciprocating member")
        verbose_name_plural = _("reciprocating members")
        ordering = ["first_name", "last_name"]

    def __str__(self):
        return f"{self.name} ({self.club or '-'})"

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
        return not self.is_active and not self.is_limit_suspended

    def save(self, *args, **kwargs):
        if self.phone_number:
            from visitman.utils import normalize_phone

            self.phone_number = normalize_phone(self.phone_number)
        if not self.member_number:
            self.member_number = None
        super().save(*args, **kwargs)


class ReciprocalVisit(models.Model):
    """Visit of a reciprocating member. One per member per day."""

    member = models.ForeignKey(
        ReciprocatingMember,
        on_delete=models.CASCADE,
        related_name="visits",
        verbose_name=_("member"),
    )
    visit_date = models.DateField(_("visit date"), db_index=True)
    purpose = models.CharField(
        _("purpose"),
        max_length=20,
        choices=VisitPurpose.choices,
        blank=True,
    )
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
        verbose_name = _("reciprocal visit")
        verbose_name_plural = _("reciprocal visits")
        ordering = ["-visit_date"]
        constraints = [
            models.UniqueConstraint(
                fields=["member", "visit_date"],
                name="visitman_unique_member_visit_date",
            ),
        ]

    def __str__(self):
        return f"{self.member.name} on {self.visit_date} [{self.status}]"

    @property
    def is_casual(self) -> bool:
        return self.purpose == VisitPurpose.CASUAL_VISIT
