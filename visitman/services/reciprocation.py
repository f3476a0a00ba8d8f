"""Reciprocation service - partner clubs, their members and member visits.

Only casual visits count toward RECIPROCAL_YEARLY_LIMIT; golf tournament
visits are never limited. A visit booked without a purpose is treated as
casual until the member signs in and states one.
"""

import logging
from collections import Counter
from datetime import date, datetime

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from visitman.conf import visitman_settings
from visitman.exceptions import VisitmanError
from visitman.gates import GateError, Gates
from visitman.models import (
    ClubStatus,
    GuestStatus,
    ReciprocalVisit,
    ReciprocatingClub,
    ReciprocatingMember,
    StatusReason,
    VisitPurpose,
    VisitStatus,
)
from visitman.services.visits import StatusChange, auto_signout_at, emit_changes
from visitman.signals import (
    guest_registered,
    guest_status_changed,
    visit_signed_in,
    visit_signed_out,
    visit_status_changed,
)
from visitman.utils import is_valid_phone

logger = logging.getLogger(__name__)

CLUB_FIELDS = {"name", "email", "phone", "website", "status", "notes"}
MEMBER_FIELDS = {
    "first_name",
    "last_name",
    "email",
    "phone_number",
    "id_number",
    "receive_emails",
    "receive_messages",
}


def _casual() -> Q:
    return Q(purpose=VisitPurpose.CASUAL_VISIT) | Q(purpose="")


# ======================================================================
# Clubs
# ======================================================================


def create_club(name: str, **fields) -> ReciprocatingClub:
    """Create a partner club."""
    unknown = set(fields) - CLUB_FIELDS
    if unknown:
        raise TypeError(f"Unknown club fields: {', '.join(sorted(unknown))}")
    club = ReciprocatingClub.objects.create(name=name, **fields)
    logger.info("Created reciprocating club %s", club.pk)
    return club


def update_club(club_id: int, **fields) -> ReciprocatingClub:
    """
    Update club fields (unknown fields are ignored).

    Raises:
        VisitmanError: CLUB_NOT_FOUND, INVALID_STATUS
    """
    try:
        club = ReciprocatingClub.objects.get(pk=club_id)
    except ReciprocatingClub.DoesNotExist:
        raise VisitmanError("CLUB_NOT_FOUND", club_id=club_id)

    if "status" in fields and fields["status"] not in ClubStatus.values:
        raise VisitmanError("INVALID_STATUS", status=fields["status"])

    changed = [field for field in fields if field in CLUB_FIELDS]
    for field in changed:
        setattr(club, field, fields[field])
    if changed:
        club.save(update_fields=changed + ["updated_at"])
    return club


def delete_club(club_id: int) -> bool:
    deleted, _ = ReciprocatingClub.objects.filter(pk=club_id).delete()
    return bool(deleted)


def active_clubs() -> list[ReciprocatingClub]:
    return list(ReciprocatingClub.objects.filter(status=ClubStatus.ACTIVE))


# ======================================================================
# Members
# ======================================================================


def _get_member(member_id: int) -> ReciprocatingMember:
    try:
        return ReciprocatingMember.objects.select_related("club").get(pk=member_id)
    except ReciprocatingMember.DoesNotExist:
        raise VisitmanError("MEMBER_NOT_FOUND", member_id=member_id)


def register_member(
    first_name: str,
    last_name: str,
    id_number: str,
    phone_number: str = "",
    email: str = "",
    member_number: str = "",
    club_id: int | None = None,
    receive_emails: bool = False,
    receive_messages: bool = False,
) -> ReciprocatingMember:
    """
    Register a reciprocating member.

    Club and member number are optional here and are captured at the first
    sign-in when missing.

    Raises:
        VisitmanError: INVALID_PHONE, DUPLICATE_MEMBER_NUMBER, DUPLICATE_GUEST,
            CLUB_NOT_FOUND
    """
    if phone_number and not is_valid_phone(phone_number):
        raise VisitmanError("INVALID_PHONE", phone_number=phone_number)
    if ReciprocatingMember.objects.filter(id_number=id_number).exists():
        raise VisitmanError("DUPLICATE_GUEST", "Member with this ID number already exists")
    if member_number and ReciprocatingMember.objects.filter(member_number=member_number).exists():
        raise VisitmanError("DUPLICATE_MEMBER_NUMBER", member_number=member_number)
    if club_id and not ReciprocatingClub.objects.filter(pk=club_id).exists():
        raise VisitmanError("CLUB_NOT_FOUND", club_id=club_id)

    member = ReciprocatingMember.objects.create(
        first_name=first_name,
        last_name=last_name,
        id_number=id_number,
        phone_number=phone_number,
        email=email,
        member_number=member_number,
        club_id=club_id,
        receive_emails=receive_emails,
        receive_messages=receive_messages,
    )
    logger.info("Registered reciprocating member %s", member.pk)
    guest_registered.send(sender=ReciprocatingMember, guest=member, visit=None)
    return member


def update_member(member_id: int, **fields) -> ReciprocatingMember:
    """Update member profile fields (unknown fields are ignored)."""
    member = _get_member(member_id)
    changed = [field for field in fields if field in MEMBER_FIELDS]
    for field in changed:
        setattr(member, field, fields[field])
    if changed:
        member.save(update_fields=changed + ["updated_at"])
    return member


def set_member_status(member_id: int, status: str) -> ReciprocatingMember:
    """
    Change a member's standing by hand and re-decide their upcoming visits.

    Raises:
        VisitmanError: INVALID_STATUS, MEMBER_NOT_FOUND
    """
    if status not in GuestStatus.values:
        raise VisitmanError("INVALID_STATUS", status=status)

    member = _get_member(member_id)
    old_status = member.status
    with transaction.atomic():
        member.status = status
        member.status_reason = StatusReason.MANUAL
        member.save(update_fields=["status", "status_reason", "updated_at"])
        changes = recalculate_member_visit_statuses(member.pk, emit=False)
    member.refresh_from_db()

    if old_status != status:
        guest_status_changed.send(
            sender=ReciprocatingMember,
            person=member,
            old_status=old_status,
            new_status=status,
        )
    emit_changes(changes)
    return member


# ======================================================================
# Visits
# ======================================================================


def yearly_casual_visits(member_id: int, year: int, today: date | None = None) -> int:
    """Approved casual visits in the year that are still ahead or were attended."""
    today = today or timezone.localdate()
    return (
        ReciprocalVisit.objects.filter(
            _casual(),
            member_id=member_id,
            visit_date__year=year,
            status=VisitStatus.APPROVED,
        )
        .filter(Q(visit_date__gte=today) | Q(sign_in_time__isnull=False))
        .count()
    )


def register_visit(member_id: int, visit_date: date, purpose: str = "") -> ReciprocalVisit:
    """
    Book a visit for a reciprocating member.

    Casual visits beyond the yearly limit are booked as unapproved; a
    restricted member's booking takes the member's status.

    Raises:
        VisitmanError: MEMBER_NOT_FOUND, INVALID_VISIT_PURPOSE, DUPLICATE_VISIT
    """
    if purpose and purpose not in VisitPurpose.values:
        raise VisitmanError("INVALID_VISIT_PURPOSE", purpose=purpose)

    member = _get_member(member_id)
    with transaction.atomic():
        # Locked until the booking is stored
        member = ReciprocatingMember.objects.select_for_update().get(pk=member.pk)
        if ReciprocalVisit.objects.filter(member=member, visit_date=visit_date).exists():
            raise VisitmanError("DUPLICATE_VISIT", member_id=member.pk)

        if member.is_restricted:
            status = member.status
        elif (
            purpose != VisitPurpose.GOLF_TOURNAMENT
            and yearly_casual_visits(member.pk, visit_date.year)
            >= visitman_settings.RECIPROCAL_YEARLY_LIMIT
        ):
            status = VisitStatus.UNAPPROVED
        else:
            status = VisitStatus.APPROVED

        visit = ReciprocalVisit.objects.create(
            member=member,
            visit_date=visit_date,
            purpose=purpose,
            status=status,
        )
    logger.info("Booked reciprocal visit %s (%s)", visit.pk, status)
    return visit


def sign_in(
    member_id: int,
    member_number: str,
    purpose: str,
    club_id: int | None = None,
    now: datetime | None = None,
) -> ReciprocalVisit:
    """
    Sign a reciprocating member in for today's approved visit.

    The club and member number are recorded on the first sign-in (the
    number must be unused) and must match on later ones.

    Raises:
        VisitmanError: INVALID_VISIT_PURPOSE, MEMBER_NOT_FOUND, CLUB_REQUIRED,
            CLUB_NOT_FOUND, MEMBER_NUMBER_REQUIRED, DUPLICATE_MEMBER_NUMBER,
            MEMBER_NUMBER_MISMATCH, VISIT_NOT_FOUND
        GateError: G1 (restricted member), G4 (visit not eligible)
    """
    if purpose not in VisitPurpose.values:
        raise VisitmanError("INVALID_VISIT_PURPOSE", purpose=purpose)

    now = now or timezone.now()
    today = timezone.localdate(now)
    member = _get_member(member_id)
    Gates.guest_standing(member)

    with transaction.atomic():
        updates = []
        if member.club_id is None:
            if not club_id:
                raise VisitmanError("CLUB_REQUIRED", member_id=member.pk)
            if not ReciprocatingClub.objects.filter(pk=club_id).exists():
                raise VisitmanError("CLUB_NOT_FOUND", club_id=club_id)
            member.club_id = club_id
            updates.append("club")

        if not member.member_number:
            if not member_number:
                raise VisitmanError("MEMBER_NUMBER_REQUIRED", member_id=member.pk)
            if ReciprocatingMember.objects.filter(member_number=member_number).exists():
                raise VisitmanError("DUPLICATE_MEMBER_NUMBER", member_number=member_number)
            member.member_number = member_number
            updates.append("member_number")
        else:
            try:
                Gates.member_identity(member, member_number)
            except GateError as e:
                raise VisitmanError("MEMBER_NUMBER_MISMATCH", member_id=member.pk) from e

        if updates:
            member.save(update_fields=updates + ["updated_at"])

        visit = ReciprocalVisit.objects.filter(
            member=member,
            visit_date=today,
            status=VisitStatus.APPROVED,
        ).first()
        if visit is None:
            raise VisitmanError("VISIT_NOT_FOUND", "No approved visit found for today")
        Gates.sign_in_eligibility(visit, today)

        visit.sign_in_time = now
        visit.purpose = purpose
        visit.save(update_fields=["sign_in_time", "purpose", "updated_at"])

    logger.info("Reciprocal visit %s signed in (%s)", visit.pk, purpose)
    visit_signed_in.send(sender=ReciprocalVisit, visit=visit)
    return visit


def is_final_casual_visit(visit: ReciprocalVisit) -> bool:
    """True when this attended casual visit used the last slot of the year."""
    if not visit.is_casual or visit.sign_in_time is None:
        return False
    attended = ReciprocalVisit.objects.filter(
        member_id=visit.member_id,
        purpose=VisitPurpose.CASUAL_VISIT,
        visit_date__year=visit.visit_date.year,
        sign_in_time__isnull=False,
    ).count()
    return attended == visitman_settings.RECIPROCAL_YEARLY_LIMIT


def sign_out(visit_id: int, now: datetime | None = None) -> ReciprocalVisit:
    """
    Sign a reciprocating member out.

    Raises:
        VisitmanError: VISIT_NOT_FOUND, NOT_SIGNED_IN, ALREADY_SIGNED_OUT
    """
    try:
        visit = ReciprocalVisit.objects.select_related("member").get(pk=visit_id)
    except ReciprocalVisit.DoesNotExist:
        raise VisitmanError("VISIT_NOT_FOUND", visit_id=visit_id)

    if visit.sign_in_time is None:
        raise VisitmanError("NOT_SIGNED_IN", visit_id=visit.pk)
    if visit.sign_out_time is not None:
        raise VisitmanError("ALREADY_SIGNED_OUT", visit_id=visit.pk)

    visit.sign_out_time = now or timezone.now()
    visit.save(update_fields=["sign_out_time", "updated_at"])
    visit_signed_out.send(sender=ReciprocalVisit, visit=visit, automatic=False)
    return visit


def cancel_visit(visit_id: int) -> ReciprocalVisit:
    """Cancel a reciprocal visit and free its casual slot."""
    try:
        visit = ReciprocalVisit.objects.get(pk=visit_id)
    except ReciprocalVisit.DoesNotExist:
        raise VisitmanError("VISIT_NOT_FOUND", visit_id=visit_id)

    old_status = visit.status
    if old_status == VisitStatus.CANCELLED:
        return visit

    visit.status = VisitStatus.CANCELLED
    visit.save(update_fields=["status", "updated_at"])
    visit_status_changed.send(
        sender=ReciprocalVisit,
        visit=visit,
        old_status=old_status,
        new_status=VisitStatus.CANCELLED,
    )
    recalculate_member_visit_statuses(visit.member_id)
    return visit


# ======================================================================
# Recalculation and scheduled jobs
# ======================================================================


def recalculate_member_visit_statuses(
    member_id: int,
    today: date | None = None,
    emit: bool = True,
) -> list[StatusChange]:
    """
    Re-decide a member's upcoming visits and standing.

    Casual visits past the yearly limit become unapproved; golf tournament
    visits are always approved. An active member whose current year is
    full is suspended for the visit limit, and reactivated once it is not.
    """
    today = today or timezone.localdate()
    member = ReciprocatingMember.objects.filter(pk=member_id).first()
    if member is None:
        return []

    limit = visitman_settings.RECIPROCAL_YEARLY_LIMIT
    used: Counter = Counter()
    changes: list[StatusChange] = []

    visits = (
        ReciprocalVisit.objects.filter(member=member)
        .exclude(status=VisitStatus.CANCELLED)
        .order_by("visit_date", "created_at", "pk")
    )

    with transaction.atomic():
        for visit in visits:
            year = visit.visit_date.year
            casual = visit.purpose != VisitPurpose.GOLF_TOURNAMENT

            if visit.visit_date < today or visit.sign_in_time is not None:
                if casual and visit.sign_in_time is not None:
                    used[year] += 1
                continue

            if member.is_restricted:
                new_status = member.status
            elif casual and used[year] >= limit:
                new_status = VisitStatus.UNAPPROVED
            else:
                new_status = VisitStatus.APPROVED

            if casual and new_status == VisitStatus.APPROVED:
                used[year] += 1

            if new_status != visit.status:
                changes.append(StatusChange(visit, visit.status, new_status))
                visit.status = new_status
                visit.save(update_fields=["status", "updated_at"])

        at_limit = used[today.year] >= limit
        old_status = member.status
        if member.status == GuestStatus.ACTIVE and at_limit:
            member.status = GuestStatus.SUSPENDED
            member.status_reason = StatusReason.VISIT_LIMIT
        elif member.is_limit_suspended and not at_limit:
            member.status = GuestStatus.ACTIVE

        if member.status != old_status:
            member.save(update_fields=["status", "status_reason", "updated_at"])
            changes.append(StatusChange(member, old_status, member.status))
            logger.info("Reciprocating member %s status %s -> %s", member.pk, old_status, member.status)

    if emit:
        emit_changes(changes)
    return changes


def auto_sign_out(today: date | None = None) -> int:
    """Close reciprocal visits left open at the end of the day."""
    today = today or timezone.localdate()
    open_visits = list(
        ReciprocalVisit.objects.filter(
            sign_in_time__isnull=False,
            sign_out_time__isnull=True,
            visit_date__lte=today,
        )
    )
    for visit in open_visits:
        visit.sign_out_time = auto_signout_at(visit.visit_date)
        visit.save(update_fields=["sign_out_time", "updated_at"])
        visit_signed_out.send(sender=ReciprocalVisit, visit=visit, automatic=True)

    for member_id in {visit.member_id for visit in open_visits}:
        recalculate_member_visit_statuses(member_id, today=today)

    if open_visits:
        logger.info("Auto signed out %d reciprocal visit(s)", len(open_visits))
    return len(open_visits)


def reset_yearly_limits(today: date | None = None) -> int:
    """Reactivate members suspended for the casual visit limit once the year has room."""
    released = 0
    member_ids = ReciprocatingMember.objects.filter(
        status=GuestStatus.SUSPENDED,
        status_reason=StatusReason.VISIT_LIMIT,
    ).values_list("pk", flat=True)
    for member_id in list(member_ids):
        changes = recalculate_member_visit_statuses(member_id, today=today)
        released += sum(
            1
            for change in changes
            if isinstance(change.obj, ReciprocatingMember)
            and change.new_status == GuestStatus.ACTIVE
        )
    logger.info("Reciprocal yearly reset: %d member(s) reactivated", released)
    return released
