"""SMS gateway clients (SMS Leopard, MobileSASA).

Gateways only talk HTTP: they raise requests.RequestException on transport
failures and GatewayError on unreadable responses. Logging to SMSLog is
the service's job.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

import requests

from visitman.conf import visitman_settings

logger = logging.getLogger("visitman.sms")


class GatewayError(Exception):
    """Unknown provider, or a gateway answer that is not a usable JSON body."""


@dataclass
class SendResult:
    """Outcome of one send request."""

    success: bool
    message_id: str = ""
    cost: Decimal = Decimal("0")
    status: str = "sent"
    error: str = ""
    response_code: str = ""
    response: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        if self.success:
            return {
                "success": True,
                "message_id": self.message_id,
                "cost": str(self.cost),
                "status": self.status,
                "response": self.response.get("message", "SMS sent successfully"),
            }
        return {
            "success": False,
            "error": self.error,
            "response_code": self.response_code or "UNKNOWN",
        }


def _decimal(value) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError):
        return Decimal("0")


def _json(response: requests.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        raise GatewayError(f"Invalid API response: {response.text}")
    if not data or not isinstance(data, dict):
        raise GatewayError(f"Invalid API response: {response.text}")
    return data


class SMSGateway:
    """Base gateway. Subclasses set name and default_base_url."""

    name = ""
    default_base_url = ""

    @property
    def base_url(self) -> str:
        return (visitman_settings.SMS_BASE_URL or self.default_base_url).rstrip("/")

    @property
    def timeout(self) -> int:
        return visitman_settings.SMS_TIMEOUT

    def is_configured(self) -> bool:
        raise NotImplementedError

    def send(self, phone: str, message: str, status_url: str = "", status_secret: str = "") -> SendResult:
        raise NotImplementedError

    def delivery_report(self, message_id: str) -> dict | None:
        """Provider delivery report, or None when the provider has none."""
        return None

    def balance(self) -> dict | None:
        raise NotImplementedError


class SMSLeopardGateway(SMSGateway):
    """SMS Leopard REST API (Basic auth with key:secret, JSON bodies)."""

    name = "smsleopard"
    default_base_url = "https://api.smsleopard.com/v1"

    def _auth(self) -> tuple[str, str]:
        return (visitman_settings.SMS_API_KEY, visitman_settings.SMS_API_SECRET)

    def is_configured(self) -> bool:
        return bool(visitman_settings.SMS_API_KEY and visitman_settings.SMS_API_SECRET)

    def send(self, phone, message, status_url="", status_secret=""):
        payload = {
            "source": visitman_settings.SMS_SENDER_ID,
            "message": message,
            "destination": [{"number": phone}],
        }
        if status_url:
            payload["status_url"] = status_url
            if status_secret:
                payload["status_secret"] = status_secret

        response = requests.post(
            f"{self.base_url}/sms/send",
            json=payload,
            auth=self._auth(),
            timeout=self.timeout,
        )
        data = _json(response)

        if data.get("success") is True:
            recipient = (data.get("recipients") or [{}])[0]
            return SendResult(
                success=True,
                message_id=str(recipient.get("id", "")),
                cost=_decimal(recipient.get("cost", 0)),
                status=str(recipient.get("status", "sent")).lower(),
                response=data,
            )

        return SendResult(
            success=False,
            status="failed",
            error=data.get("message", "Unknown error occurred"),
            response_code=str(data.get("responseCode", "UNKNOWN")),
            response=data,
        )

    def delivery_report(self, message_id):
        response = requests.get(
            f"{self.base_url}/delivery_reports/{message_id}",
            auth=self._auth(),
            timeout=15,
        )
        data = _json(response)
        if "status" not in data:
            logger.warning("Delivery report for %s has no status: %s", message_id, data)
            return None
        return data

    def balance(self):
        response = requests.get(f"{self.base_url}/balance", auth=self._auth(), timeout=15)
        data = _json(response)
        if "balance" not in data:
            logger.error("Balance response has no balance: %s", data)
            return None
        return {
            "balance": _decimal(data["balance"]),
            "converted_balance": (
                _decimal(data["converted_balance"])
                if data.get("converted_balance") is not None
                else None
            ),
            "currency": data.get("currency") or "",
        }


class MobileSasaGateway(SMSGateway):
    """MobileSASA API (form-encoded send with api_token, Bearer for balance)."""

    name = "mobilesasa"
    default_base_url = "https://api.mobilesasa.com/v1"

    def is_configured(self) -> bool:
        return bool(visitman_settings.SMS_API_TOKEN)

    def send(self, phone, message, status_url="", status_secret=""):
        response = requests.post(
            f"{self.base_url}/send/message",
            data={
                "senderID": visitman_settings.SMS_SENDER_ID,
                "message": message,
                "phone": phone,
                "api_token": visitman_settings.SMS_API_TOKEN,
            },
            timeout=self.timeout,
        )
        data = _json(response)
        if "status" not in data:
            raise GatewayError(f"Invalid API response: {response.text}")

        if data["status"] is True:
            return SendResult(
                success=True,
                message_id=str(data.get("messageId", "")),
                status="sent",
                response=data,
            )
        return SendResult(
            success=False,
            status="failed",
            error=data.get("message", "Unknown error occurred"),
            response_code=str(data.get("responseCode", "UNKNOWN")),
            response=data,
        )

    def balance(self):
        response = requests.get(
            f"{self.base_url}/get-balance",
            headers={
                "Authorization": f"Bearer {visitman_settings.SMS_API_TOKEN}",
                "Accept": "application/json",
            },
            timeout=15,
        )
        data = _json(response)
        if data.get("status") is not True:
            logger.error("Failed to retrieve SMS balance: %s", data)
            return None
        return {"balance": _decimal(data.get("balance", 0)), "converted_balance": None, "currency": ""}


GATEWAYS = {
    SMSLeopardGateway.name: SMSLeopardGateway,
    MobileSasaGateway.name: MobileSasaGateway,
}


def get_gateway(provider: str | None = None) -> SMSGateway:
    """Gateway instance for SMS_PROVIDER (or the given provider name)."""
    provider = provider or visitman_settings.SMS_PROVIDER
    try:
        return GATEWAYS[provider]()
    except KeyError:
        raise GatewayError(f"Unknown SMS provider: {provider!r}")
