"""Member service - hosting club members."""

import logging

from django.db.models import Q

from visitman.exceptions import VisitmanError
from visitman.models import Member
from visitman.signals import member_status_changed

logger = logging.getLogger(__name__)


def get(member_id: int) -> Member | None:
    """Get active member by primary key."""
    try:
        return Member.objects.get(pk=member_id, is_active=True)
    except Member.DoesNotExist:
        return None


def get_by_number(member_number: str) -> Member | None:
    """Get active member by member number."""
    try:
        return Member.objects.get(member_number=member_number, is_active=True)
    except Member.DoesNotExist:
        return None


def get_for_user(user) -> Member | None:
    """Member linked to a Django user account."""
    if not user or not user.is_authenticated:
        return None
    return Member.objects.filter(user=user, is_active=True).first()


def search(query: str, limit: int = 20) -> list[Member]:
    """Search active members by number, name or phone."""
    qs = Member.objects.filter(is_active=True)
    if query:
        qs = qs.filter(
            Q(member_number__icontains=query)
            | Q(first_name__icontains=query)
            | Q(last_name__icontains=query)
            | Q(phone_number__icontains=query)
        )
    return list(qs[:limit])


def create(member_number: str, first_name: str, last_name: str = "", **kwargs) -> Member:
    """
    Create a member.

    Raises:
        VisitmanError: DUPLICATE_MEMBER_NUMBER
    """
    if Member.objects.filter(member_number=member_number).exists():
        raise VisitmanError("DUPLICATE_MEMBER_NUMBER", member_number=member_number)
    member = Member.objects.create(
        member_number=member_number,
        first_name=first_name,
        last_name=last_name,
        **kwargs,
    )
    logger.info("Created member %s", member.member_number)
    return member


def set_active(member_id: int, is_active: bool) -> Member:
    """
    Activate or deactivate a member. Inactive members cannot host.

    Raises:
        VisitmanError: MEMBER_NOT_FOUND
    """
    try:
        member = Member.objects.get(pk=member_id)
    except Member.DoesNotExist:
        raise VisitmanError("MEMBER_NOT_FOUND", member_id=member_id)

    if member.is_active != is_active:
        member.is_active = is_active
        member.save(update_fields=["is_active", "updated_at"])
        logger.info("Member %s active=%s", member.member_number, is_active)
        member_status_changed.send(sender=Member, member=member, is_active=is_active)
    return member
