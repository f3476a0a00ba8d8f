"""SMS service - send through the configured gateway and keep the log."""

import logging
import time
from datetime import timedelta
from decimal import Decimal

import requests
from django.db.models import Count, Q, Sum
from django.utils import timezone

from visitman.conf import visitman_settings
from visitman.contrib.sms.gateways import GatewayError, SendResult, get_gateway
from visitman.contrib.sms.models import GatewayBalance, SMSLog, SMSStatus
from visitman.exceptions import VisitmanError
from visitman.utils import is_valid_phone, normalize_phone

logger = logging.getLogger("visitman.sms")

TEST_MESSAGE = "Test message from VMS. Your SMS integration is working correctly!"


class SMSService:
    """
    Service for outgoing SMS.

    Uses @classmethod for extensibility (consistent with other contrib services).
    Sending never raises on gateway trouble: the attempt is logged as
    failed and None is returned.
    """

    @classmethod
    def _log(
        cls,
        number: str,
        message: str,
        provider: str,
        recipient_ref: str = "",
        recipient_role: str = "",
        status: str = SMSStatus.FAILED,
        message_id: str = "",
        cost: Decimal = Decimal("0"),
        response_data: dict | None = None,
        error_message: str = "",
    ) -> SMSLog:
        return SMSLog.objects.create(
            recipient_number=number,
            recipient_ref=recipient_ref,
            recipient_role=recipient_role,
            message=message,
            provider=provider,
            message_id=message_id,
            status=status,
            cost=cost,
            response_data=response_data or {},
            error_message=error_message,
        )

    @classmethod
    def _gateway(cls):
        """Gateway for SMS_PROVIDER, or None when the provider is unknown."""
        try:
            return get_gateway()
        except GatewayError as e:
            logger.error("%s", e)
            return None

    @classmethod
    def is_configured(cls) -> bool:
        gateway = cls._gateway()
        return gateway is not None and gateway.is_configured()

    @classmethod
    def send(
        cls,
        phone: str,
        message: str,
        recipient_ref: str = "",
        recipient_role: str = "",
    ) -> SendResult | None:
        """
        Send one message.

        Args:
            phone: Recipient phone (any local format, normalized here)
            message: Text
            recipient_ref: Local reference stored in the log (e.g. "guest:12")
            recipient_role: Role stored in the log

        Returns:
            SendResult (success or gateway rejection), or None when the
            message could not be submitted at all
        """
        gateway = cls._gateway()
        number = normalize_phone(phone)
        log_kwargs = {
            "number": number,
            "message": message,
            "provider": gateway.name if gateway else str(visitman_settings.SMS_PROVIDER)[:20],
            "recipient_ref": recipient_ref,
            "recipient_role": recipient_role,
        }

        if gateway is None:
            cls._log(**log_kwargs, error_message="Unknown SMS provider")
            return None

        if not gateway.is_configured():
            logger.warning("SMS not sent to %s: API credentials not configured", number)
            cls._log(**log_kwargs, error_message="API credentials not configured")
            return None

        try:
            result = gateway.send(
                number,
                message,
                status_url=visitman_settings.SMS_CALLBACK_URL,
                status_secret=visitman_settings.SMS_STATUS_SECRET,
            )
        except requests.RequestException as e:
            logger.error("SMS API error for %s: %s", number, e)
            cls._log(**log_kwargs, error_message=str(e))
            return None
        except GatewayError as e:
            logger.error("%s", e)
            cls._log(**log_kwargs, error_message=str(e))
            return None

        if result.success:
            cls._log(
                **log_kwargs,
                status=result.status,
                message_id=result.message_id,
                cost=result.cost,
                response_data=result.response,
            )
            logger.info("SMS %s sent to %s (%s)", result.message_id, number, result.status)
        else:
            cls._log(
                **log_kwargs,
                response_data=result.response,
                error_message=result.error,
            )
            logger.warning("SMS to %s rejected: %s (%s)", number, result.error, result.response_code)
        return result

    @classmethod
    def send_bulk(cls, recipients: list, message: str, recipient_role: str = "") -> list[dict]:
        """
        Send the same message to several recipients.

        Args:
            recipients: Phone strings or dicts with "phone" and optional "ref"

        Returns:
            [{"phone": str, "result": SendResult | None}, ...]
        """
        results = []
        for index, recipient in enumerate(recipients):
            if index:
                time.sleep(visitman_settings.SMS_REQUEST_DELAY)
            if isinstance(recipient, dict):
                phone = recipient["phone"]
                ref = recipient.get("ref", "")
            else:
                phone, ref = recipient, ""
            result = cls.send(phone, message, recipient_ref=ref, recipient_role=recipient_role)
            results.append({"phone": phone, "result": result})
        return results

    @classmethod
    def send_test(cls, phone: str) -> SendResult | None:
        """
        Send the integration test message.

        Raises:
            VisitmanError: INVALID_PHONE
        """
        if not is_valid_phone(phone):
            raise VisitmanError("INVALID_PHONE", phone=phone)
        return cls.send(phone, TEST_MESSAGE, recipient_role="test")

    # ------------------------------------------------------------------
    # Delivery status
    # ------------------------------------------------------------------

    @classmethod
    def update_status(cls, message_id: str, status: str, extra: dict | None = None) -> bool:
        """
        Set the delivery status of logged messages with this gateway ID.

        extra is merged into response_data (callback reason and time).

        Returns:
            False if nothing matched
        """
        if not message_id or not status:
            return False

        status = status.lower()
        logs = list(SMSLog.objects.filter(message_id=message_id))
        if not logs:
            logger.warning("Status update for unknown message %s", message_id)
            return False

        for log in logs:
            log.status = status
            if extra:
                log.response_data = {**(log.response_data or {}), **extra}
            log.save(update_fields=["status", "response_data", "updated_at"])
        logger.info("SMS %s status -> %s", message_id, status)
        return True

    @classmethod
    def delivery_report(cls, message_id: str) -> dict | None:
        """Fetch the provider's delivery report and apply its status."""
        gateway = cls._gateway()
        if not message_id or gateway is None or not gateway.is_configured():
            return None

        try:
            report = gateway.delivery_report(message_id)
        except (requests.RequestException, GatewayError) as e:
            logger.error("Delivery report for %s failed: %s", message_id, e)
            return None

        if report:
            cls.update_status(message_id, str(report["status"]))
        return report

    @classmethod
    def check_pending_delivery(cls, limit: int = 50) -> int:
        """
        Poll delivery reports for recent messages still sent or queued.

        Only messages from the last 24 hours are checked.

        Returns:
            Number of messages whose report was applied
        """
        since = timezone.now() - timedelta(hours=24)
        pending = list(
            SMSLog.objects.filter(
                status__in=[SMSStatus.SENT, SMSStatus.QUEUED],
                created_at__gt=since,
            )
            .exclude(message_id="")
            .values_list("message_id", flat=True)[:limit]
        )
        logger.info("Checking %d pending SMS message(s)", len(pending))

        updated = 0
        for index, message_id in enumerate(pending):
            if index:
                time.sleep(visitman_settings.SMS_REQUEST_DELAY)
            if cls.delivery_report(message_id):
                updated += 1
        return updated

    # ------------------------------------------------------------------
    # Balance
    # ------------------------------------------------------------------

    @classmethod
    def fetch_balance(cls) -> GatewayBalance | None:
        """Fetch the account balance and store it."""
        gateway = cls._gateway()
        if gateway is None or not gateway.is_configured():
            logger.warning("SMS API credentials not configured; balance not fetched")
            return None

        try:
            data = gateway.balance()
        except (requests.RequestException, GatewayError) as e:
            logger.error("Error fetching SMS balance: %s", e)
            return None
        if data is None:
            return None

        balance, _ = GatewayBalance.objects.update_or_create(
            provider=gateway.name,
            defaults=data,
        )
        logger.info("SMS balance for %s: %s %s", gateway.name, balance.balance, balance.currency)
        return balance

    @classmethod
    def current_balance(cls) -> GatewayBalance | None:
        return GatewayBalance.objects.filter(provider=visitman_settings.SMS_PROVIDER).first()

    @classmethod
    def quota_status(cls) -> dict:
        """
        Last known balance graded against SMS_LOW_BALANCE_THRESHOLD.

        Returns:
            {"balance", "is_low", "is_empty", "status"} where status is
            "empty", "low" or "good"
        """
        snapshot = cls.current_balance()
        balance = snapshot.balance if snapshot else Decimal("0")
        threshold = Decimal(visitman_settings.SMS_LOW_BALANCE_THRESHOLD)
        is_empty = balance <= 0
        is_low = balance < threshold
        if is_empty:
            status = "empty"
        elif is_low:
            status = "low"
        else:
            status = "good"
        return {"balance": balance, "is_low": is_low, "is_empty": is_empty, "status": status}

    # ------------------------------------------------------------------
    # Reporting and housekeeping
    # ------------------------------------------------------------------

    @classmethod
    def recent_logs(cls, limit: int = 10) -> list[SMSLog]:
        return list(SMSLog.objects.all()[:limit])

    @classmethod
    def statistics(cls, days: int = 30) -> dict:
        """Totals for messages logged in the last `days` days."""
        since = timezone.now() - timedelta(days=days)
        stats = SMSLog.objects.filter(created_at__gte=since).aggregate(
            total=Count("pk"),
            sent=Count("pk", filter=Q(status__in=[SMSStatus.SENT, SMSStatus.DELIVERED])),
            failed=Count("pk", filter=Q(status=SMSStatus.FAILED)),
            delivered=Count("pk", filter=Q(status=SMSStatus.DELIVERED)),
            total_cost=Sum("cost"),
        )
        total = stats["total"]
        return {
            "total": total,
            "sent": stats["sent"],
            "failed": stats["failed"],
            "delivered": stats["delivered"],
            "total_cost": stats["total_cost"] or Decimal("0"),
            "success_rate": round(stats["sent"] / total * 100, 2) if total else 0,
            "period_days": days,
        }

    @classmethod
    def cleanup_old_logs(cls, days: int | None = None) -> int:
        """Delete log entries older than `days` (SMS_LOG_CLEANUP_DAYS by default)."""
        days = days if days is not None else visitman_settings.SMS_LOG_CLEANUP_DAYS
        cutoff = timezone.now() - timedelta(days=days)
        deleted, _ = SMSLog.objects.filter(created_at__lt=cutoff).delete()
        logger.info("Deleted %d SMS log(s) older than %d days", deleted, days)
        return deleted
