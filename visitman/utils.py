"""Phone and date helpers shared by services and the SMS gateway."""

from datetime import datetime

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

from visitman.conf import visitman_settings


def _region() -> str:
    return phonenumbers.region_code_for_country_code(int(visitman_settings.DEFAULT_COUNTRY_CODE))


def _parse(phone: str):
    return phonenumbers.parse(phone.strip(), _region())


def normalize_phone(phone: str) -> str:
    """
    Normalize a phone number to international digits without the plus sign.

    0712345678        -> 254712345678
    712345678         -> 254712345678
    +254 712 345 678  -> 254712345678
    Input that does not parse as a number is returned as bare digits.
    """
    if not phone:
        return ""
    try:
        parsed = _parse(phone)
    except NumberParseException:
        return "".join(filter(str.isdigit, phone))
    return phonenumbers.format_number(parsed, PhoneNumberFormat.E164).lstrip("+")


def is_valid_phone(phone: str) -> bool:
    """True for a number that is valid in the club's home country."""
    if not phone:
        return False
    try:
        parsed = _parse(phone)
    except NumberParseException:
        return False
    return (
        phonenumbers.is_valid_number(parsed)
        and parsed.country_code == int(visitman_settings.DEFAULT_COUNTRY_CODE)
    )


def format_duration(sign_in: datetime | None, sign_out: datetime | None) -> str:
    """Human-readable time between sign-in and sign-out ("N/A" if incomplete)."""
    if not sign_in or not sign_out:
        return "N/A"
    delta = sign_out - sign_in
    hours, remainder = divmod(delta.seconds, 3600)
    minutes = remainder // 60
    if delta.days > 0:
        return f"{delta.days} day(s) {hours}:{minutes:02d}"
    return f"{hours}:{minutes:02d}"
