"""Guest service - lookups and profile maintenance.

Lookups return None for unknown records; status changes live in
services.visits because they re-decide visits.
"""

import logging

from django.db.models import Q

from visitman.models import Guest, GuestType
from visitman.utils import normalize_phone

logger = logging.getLogger(__name__)

# Fields staff may edit through update(); status goes through set_guest_status()
UPDATABLE_FIELDS = {
    "first_name",
    "last_name",
    "email",
    "phone_number",
    "id_number",
    "receive_emails",
    "receive_messages",
}


def get(guest_id: int) -> Guest | None:
    """Get guest by primary key."""
    try:
        return Guest.objects.get(pk=guest_id)
    except Guest.DoesNotExist:
        return None


def get_by_phone(phone: str, guest_type: str = GuestType.GUEST) -> Guest | None:
    """Get guest by phone (matched on the normalized number)."""
    phone_normalized = normalize_phone(phone)
    if not phone_normalized:
        return None
    return Guest.objects.filter(guest_type=guest_type, phone_number=phone_normalized).first()


def get_by_id_number(id_number: str, guest_type: str = GuestType.GUEST) -> Guest | None:
    """Get guest by national ID or passport number."""
    if not id_number:
        return None
    return Guest.objects.filter(guest_type=guest_type, id_number=id_number.strip()).first()


def search(query: str, guest_type: str | None = None, limit: int = 20) -> list[Guest]:
    """Search guests by name, phone, email or ID number."""
    qs = Guest.objects.all()
    if guest_type:
        qs = qs.filter(guest_type=guest_type)

    if query:
        qs = qs.filter(
            Q(first_name__icontains=query)
            | Q(last_name__icontains=query)
            | Q(phone_number__icontains=query)
            | Q(email__icontains=query)
            | Q(id_number__icontains=query)
        )

    return list(qs[:limit])


def update(guest_id: int, **fields) -> Guest | None:
    """
    Update guest profile fields.

    Unknown or protected fields are ignored. Returns None if the guest
    does not exist.
    """
    guest = get(guest_id)
    if guest is None:
        return None

    changed = []
    for field, value in fields.items():
        if field not in UPDATABLE_FIELDS:
            logger.warning("Ignoring non-updatable guest field %r", field)
            continue
        setattr(guest, field, value)
        changed.append(field)

    if changed:
        guest.save(update_fields=changed + ["updated_at"])
    return guest


def delete(guest_id: int) -> bool:
    """Delete a guest and their visits. Returns False if not found."""
    deleted, _ = Guest.objects.filter(pk=guest_id).delete()
    if deleted:
        logger.info("Deleted guest %s", guest_id)
    return bool(deleted)
