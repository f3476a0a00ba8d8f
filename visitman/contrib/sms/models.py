"""SMS log and gateway balance models."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class SMSStatus(models.TextChoices):
    UNKNOWN = "unknown", _("Unknown")
    SENT = "sent", _("Sent")
    QUEUED = "queued", _("Queued")
    DELIVERED = "delivered", _("Delivered")
    FAILED = "failed", _("Failed")
    EXPIRED = "expired", _("Expired")
    UNDELIVERED = "undelivered", _("Undelivered")


class SMSLog(models.Model):
    """
    One outgoing message and its delivery state.

    Every send attempt is logged, including those that never reached the
    gateway (missing credentials, transport errors). status is updated by
    the delivery callback and by the pending-delivery poll.
    """

    recipient_number = models.CharField(_("recipient number"), max_length=20, db_index=True)
    recipient_role = models.CharField(
        _("recipient role"),
        max_length=30,
        blank=True,
        help_text=_("guest, member, reciprocating_member, employee, test"),
    )
    recipient_ref = models.CharField(
        _("recipient reference"),
        max_length=100,
        blank=True,
        help_text=_("Local reference, e.g. guest:12"),
    )
    message = models.TextField(_("message"))

    provider = models.CharField(_("provider"), max_length=20)
    message_id = models.CharField(_("message ID"), max_length=100, blank=True, db_index=True)
    status = models.CharField(
        _("status"),
        max_length=20,
        choices=SMSStatus.choices,
        default=SMSStatus.UNKNOWN,
        db_index=True,
    )
    cost = models.DecimalField(_("cost"), max_digits=10, decimal_places=4, default=0)
    response_data = models.JSONField(_("response data"), default=dict, blank=True)
    error_message = models.TextField(_("error"), blank=True)

    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("SMS log")
        verbose_name_plural = _("SMS logs")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="vm_smslog_status_created_idx"),
        ]

    def __str__(self):
        return f"{self.recipient_number} [{self.status}]"


class GatewayBalance(models.Model):
    """Last known account balance per provider."""

    provider = models.CharField(_("provider"), max_length=20, unique=True)
    balance = models.DecimalField(_("balance"), max_digits=12, decimal_places=2, default=0)
    converted_balance = models.DecimalField(
        _("converted balance"),
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
    )
    currency = models.CharField(_("currency"), max_length=10, blank=True)
    checked_at = models.DateTimeField(_("checked at"), auto_now=True)

    class Meta:
        verbose_name = _("gateway balance")
        verbose_name_plural = _("gateway balances")

    def __str__(self):
        return f"{self.provider}: {self.balance} {self.currency}".strip()
