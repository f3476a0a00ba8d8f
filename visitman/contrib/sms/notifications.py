"""Guest, member and host notification texts and dispatch."""

import logging

from django.utils import dateformat, timezone

from visitman.conf import visitman_settings
from visitman.contrib.sms.service import SMSService

logger = logging.getLogger("visitman.sms")

FINAL_CASUAL_VISIT_NOTE = (
    " Note: This is your final casual visit for the year. For the rest of the"
    " year, you will only be allowed to enter for golf tournaments only."
)


def _date(value) -> str:
    return dateformat.format(value, "F j, Y")


def _time(value) -> str:
    return dateformat.format(timezone.localtime(value), "g:i A")


def recipient_role(person) -> str:
    return {
        "Guest": "guest",
        "ReciprocatingMember": "reciprocating_member",
        "Member": "member",
    }.get(type(person).__name__, "")


def visitor_of(visit):
    """Guest of a Visit or member of a ReciprocalVisit."""
    return getattr(visit, "guest", None) or visit.member


def notify(person, message: str | None):
    """Send message to person if they have a phone and accept SMS."""
    if not message or not person.phone_number or not person.receive_messages:
        return None
    role = recipient_role(person)
    return SMSService.send(
        person.phone_number,
        message,
        recipient_ref=f"{role}:{person.pk}",
        recipient_role=role,
    )


# ----------------------------------------------------------------------
# Message texts
# ----------------------------------------------------------------------


def guest_status_message(name: str, old_status: str, new_status: str) -> str | None:
    message = f"Dear {name}, "
    if new_status == "suspended":
        if old_status == "active":
            return message + (
                "your guest privileges have been temporarily suspended due to visit "
                "limit exceeded. Contact reception for assistance."
            )
        return message + "your guest status has been updated to suspended."
    if new_status == "banned":
        return message + (
            "your guest privileges have been permanently revoked. "
            "Please contact management for clarification."
        )
    if new_status == "active" and old_status in ("suspended", "banned"):
        return message + (
            "your guest privileges have been restored. You can now make new visit requests."
        )
    return None


VISIT_STATUS_ENDINGS = {
    "approved": "has been approved. Please carry a valid ID when you arrive.",
    "unapproved": (
        "is currently pending approval due to capacity limits. "
        "You will be notified once approved."
    ),
    "cancelled": "has been cancelled. Please contact your host for more information.",
}


def visit_status_message(name: str, visit_date, old_status: str, new_status: str) -> str | None:
    ending = VISIT_STATUS_ENDINGS.get(new_status)
    if ending is None or old_status == new_status:
        return None
    return (
        f"{visitman_settings.CLUB_NAME}: Dear {name}, your visit on {_date(visit_date)} {ending}"
    )


def host_limit_message(name: str, visit_date, unapproved_count: int) -> str | None:
    if unapproved_count <= 0:
        return None
    return (
        f"Dear {name}, you have exceeded your daily guest limit "
        f"({visitman_settings.DAILY_HOST_LIMIT}) for {_date(visit_date)}. "
        f"{unapproved_count} guest(s) are pending approval and will be notified "
        "once slots become available."
    )


def sign_in_message(name: str, sign_in_time) -> str:
    return (
        f"Welcome {name}! You have successfully signed in at {_time(sign_in_time)}. "
        "Enjoy your visit!"
    )


def reciprocal_sign_in_message(name: str, sign_in_time, is_final: bool = False) -> str:
    message = (
        f"{visitman_settings.CLUB_NAME}: Hello {name}, you have signed in successfully "
        f"at {_time(sign_in_time)}. Enjoy your visit!"
    )
    if is_final:
        message += FINAL_CASUAL_VISIT_NOTE
    return message


def sign_out_message(name: str, sign_out_time) -> str:
    return (
        f"Thank you for your visit {name}! You have successfully signed out at "
        f"{_time(sign_out_time)}. Have a great day!"
    )
