"""Visits service - guest registration, visit decisions and attendance.

Decision for a new booking:

    host's bookings on the date >= DAILY_HOST_LIMIT             -> unapproved
    guest's monthly visits >= MONTHLY_GUEST_LIMIT
        or yearly visits >= YEARLY_GUEST_LIMIT                  -> suspended
    otherwise                                                   -> approved

A visit consumes the guest's allowance when it is approved and either
still ahead or actually attended; missed visits give their slot back.

All write operations that touch >1 record use transaction.atomic().
Signals are sent after the writes.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from visitman.conf import visitman_settings
from visitman.exceptions import VisitmanError
from visitman.gates import Gates
from visitman.models import (
    Guest,
    GuestStatus,
    GuestType,
    Member,
    StatusReason,
    Visit,
    VisitStatus,
)
from visitman.signals import (
    guest_registered,
    guest_status_changed,
    host_limit_exceeded,
    visit_signed_in,
    visit_signed_out,
    visit_status_changed,
)
from visitman.utils import is_valid_phone, normalize_phone

logger = logging.getLogger(__name__)


@dataclass
class StatusChange:
    """A status transition recorded during recalculation."""

    obj: object
    old_status: str
    new_status: str


# ======================================================================
# Counting
# ======================================================================


def _consuming(today: date | None = None) -> Q:
    today = today or timezone.localdate()
    return Q(status=VisitStatus.APPROVED) & (
        Q(visit_date__gte=today) | Q(sign_in_time__isnull=False)
    )


def daily_visits_to_host(
    host_id: int,
    visit_date: date,
    exclude_visit_id: int | None = None,
) -> int:
    """
    Bookings holding one of the host's slots on visit_date.

    Every booking counts except cancelled ones and unapproved ones still
    waiting for a slot.
    """
    qs = Visit.objects.filter(host_id=host_id, visit_date=visit_date).exclude(
        status__in=[VisitStatus.CANCELLED, VisitStatus.UNAPPROVED]
    )
    if exclude_visit_id:
        qs = qs.exclude(pk=exclude_visit_id)
    return qs.count()


def monthly_visits(
    guest_id: int,
    visit_date: date,
    exclude_visit_id: int | None = None,
) -> int:
    """Visits consuming the guest's allowance in the month of visit_date."""
    qs = Visit.objects.filter(
        _consuming(),
        guest_id=guest_id,
        visit_date__year=visit_date.year,
        visit_date__month=visit_date.month,
    )
    if exclude_visit_id:
        qs = qs.exclude(pk=exclude_visit_id)
    return qs.count()


def yearly_visits(
    guest_id: int,
    visit_date: date,
    exclude_visit_id: int | None = None,
) -> int:
    """Visits consuming the guest's allowance in the year of visit_date."""
    qs = Visit.objects.filter(
        _consuming(),
        guest_id=guest_id,
        visit_date__year=visit_date.year,
    )
    if exclude_visit_id:
        qs = qs.exclude(pk=exclude_visit_id)
    return qs.count()


def calculate_guest_status(guest: Guest, host: Member | None, visit_date: date) -> str:
    """
    Decide the status of a new booking.

    Args:
        guest: Guest (may be unsaved for a first registration)
        host: Hosting member, or None for a courtesy visit
        visit_date: Requested date

    Returns:
        One of VisitStatus values
    """
    if guest.pk and guest.is_restricted:
        return guest.status

    if host is not None and not Gates.check_host_daily_capacity(host.pk, visit_date):
        return VisitStatus.UNAPPROVED

    if guest.pk and not Gates.check_guest_allowance(guest.pk, visit_date):
        return VisitStatus.SUSPENDED

    return VisitStatus.APPROVED


# ======================================================================
# Registration
# ======================================================================


def _get_host(host_id: int | None) -> Member | None:
    if host_id is None:
        return None
    try:
        return Member.objects.get(pk=host_id, is_active=True)
    except Member.DoesNotExist:
        raise VisitmanError("HOST_NOT_FOUND", host_id=host_id)


def _find_guest(guest_type: str, phone_number: str, id_number: str) -> Guest | None:
    lookup = Q(phone_number=normalize_phone(phone_number)) if phone_number else Q(pk__in=[])
    if id_number:
        lookup |= Q(id_number=id_number)
    return Guest.objects.filter(lookup, guest_type=guest_type).first()


def _book(guest: Guest, host: Member | None, visit_date: date, courtesy: str) -> Visit:
    """Decide and store a booking. Must run inside transaction.atomic()."""
    # Host then guest, locked until the booking is stored
    if host is not None:
        Member.objects.select_for_update().get(pk=host.pk)
    Guest.objects.select_for_update().get(pk=guest.pk)
    guest.refresh_from_db(fields=["status", "status_reason"])

    if Visit.objects.filter(guest=guest, host=host, visit_date=visit_date).exists():
        raise VisitmanError(
            "DUPLICATE_VISIT",
            guest_id=guest.pk,
            visit_date=visit_date.isoformat(),
        )
    status = calculate_guest_status(guest, host, visit_date)
    return Visit.objects.create(
        guest=guest,
        host=host,
        courtesy=courtesy,
        visit_date=visit_date,
        status=status,
    )


def _after_booking(visit: Visit) -> None:
    """Suspend the guest or warn the host when the booking hit a limit."""
    guest = visit.guest
    if visit.status == VisitStatus.SUSPENDED and guest.status == GuestStatus.ACTIVE:
        guest.status = GuestStatus.SUSPENDED
        guest.status_reason = StatusReason.VISIT_LIMIT
        guest.save(update_fields=["status", "status_reason", "updated_at"])
        logger.info("Guest %s suspended: visit allowance used up", guest.pk)
        guest_status_changed.send(
            sender=Guest,
            person=guest,
            old_status=GuestStatus.ACTIVE,
            new_status=GuestStatus.SUSPENDED,
        )

    if visit.status == VisitStatus.UNAPPROVED and visit.host_id:
        unapproved = Visit.objects.filter(
            host_id=visit.host_id,
            visit_date=visit.visit_date,
            status=VisitStatus.UNAPPROVED,
        ).count()
        host_limit_exceeded.send(
            sender=Member,
            host=visit.host,
            visit_date=visit.visit_date,
            unapproved_count=unapproved,
        )


def register_guest(
    first_name: str,
    last_name: str,
    phone_number: str,
    visit_date: date,
    host_id: int | None = None,
    id_number: str = "",
    email: str = "",
    courtesy: str = "",
    guest_type: str = GuestType.GUEST,
    receive_emails: bool = False,
    receive_messages: bool = False,
) -> tuple[Guest, Visit]:
    """
    Register a guest and book their first visit.

    A guest already known by phone or ID number (within the same type) is
    reused. Either a host or a courtesy note is required.

    Returns:
        Tuple of (Guest, Visit)

    Raises:
        VisitmanError: INVALID_GUEST_TYPE, INVALID_PHONE, HOST_NOT_FOUND,
            DUPLICATE_VISIT
    """
    if guest_type not in GuestType.values:
        raise VisitmanError("INVALID_GUEST_TYPE", guest_type=guest_type)
    if phone_number and not is_valid_phone(phone_number):
        raise VisitmanError("INVALID_PHONE", phone_number=phone_number)
    if host_id is None and not courtesy:
        raise VisitmanError("HOST_NOT_FOUND", "Host member or courtesy is required")

    host = _get_host(host_id)

    with transaction.atomic():
        guest = _find_guest(guest_type, phone_number, id_number)
        if guest is None:
            guest = Guest.objects.create(
                guest_type=guest_type,
                first_name=first_name,
                last_name=last_name,
                phone_number=phone_number,
                id_number=id_number,
                email=email,
                receive_emails=receive_emails,
                receive_messages=receive_messages,
            )
            logger.info("Registered guest %s (%s)", guest.pk, guest_type)
        visit = _book(guest, host, visit_date, courtesy)

    guest_registered.send(sender=Guest, guest=guest, visit=visit)
    _after_booking(visit)
    return guest, visit


def register_visit(
    guest_id: int,
    visit_date: date,
    host_id: int | None = None,
    courtesy: str = "",
) -> Visit:
    """
    Book another visit for an existing guest.

    Raises:
        VisitmanError: GUEST_NOT_FOUND, HOST_NOT_FOUND, DUPLICATE_VISIT
    """
    try:
        guest = Guest.objects.get(pk=guest_id)
    except Guest.DoesNotExist:
        raise VisitmanError("GUEST_NOT_FOUND", guest_id=guest_id)

    host = _get_host(host_id)
    with transaction.atomic():
        visit = _book(guest, host, visit_date, courtesy)

    _after_booking(visit)
    return visit


# ======================================================================
# Attendance
# ======================================================================


def _get_visit(visit_id: int) -> Visit:
    try:
        return Visit.objects.select_related("guest", "host").get(pk=visit_id)
    except Visit.DoesNotExist:
        raise VisitmanError("VISIT_NOT_FOUND", visit_id=visit_id)


def sign_in(visit_id: int, id_number: str | None = None, now: datetime | None = None) -> Visit:
    """
    Sign a guest in for today's visit.

    When id_number is given it must match the guest's recorded ID; a guest
    without one gets it recorded.

    Raises:
        VisitmanError: VISIT_NOT_FOUND, ID_NUMBER_MISMATCH, DUPLICATE_GUEST
        GateError: G1 (restricted guest), G4 (visit not eligible today)
    """
    now = now or timezone.now()
    visit = _get_visit(visit_id)
    guest = visit.guest

    Gates.guest_standing(guest)
    Gates.sign_in_eligibility(visit, timezone.localdate(now))

    with transaction.atomic():
        if id_number:
            if guest.id_number and guest.id_number != id_number:
                raise VisitmanError("ID_NUMBER_MISMATCH", guest_id=guest.pk)
            if not guest.id_number:
                taken = (
                    Guest.objects.filter(guest_type=guest.guest_type, id_number=id_number)
                    .exclude(pk=guest.pk)
                    .exists()
                )
                if taken:
                    raise VisitmanError("DUPLICATE_GUEST", "ID number belongs to another guest")
                guest.id_number = id_number
                guest.save(update_fields=["id_number", "updated_at"])

        visit.sign_in_time = now
        visit.save(update_fields=["sign_in_time", "updated_at"])

    logger.info("Visit %s signed in", visit.pk)
    visit_signed_in.send(sender=Visit, visit=visit)
    return visit


def sign_out(visit_id: int, now: datetime | None = None) -> Visit:
    """
    Sign a guest out.

    Raises:
        VisitmanError: VISIT_NOT_FOUND, NOT_SIGNED_IN, ALREADY_SIGNED_OUT
    """
    visit = _get_visit(visit_id)

    if visit.sign_in_time is None:
        raise VisitmanError("NOT_SIGNED_IN", visit_id=visit.pk)
    if visit.sign_out_time is not None:
        raise VisitmanError("ALREADY_SIGNED_OUT", visit_id=visit.pk)

    visit.sign_out_time = now or timezone.now()
    visit.save(update_fields=["sign_out_time", "updated_at"])

    logger.info("Visit %s signed out", visit.pk)
    visit_signed_out.send(sender=Visit, visit=visit, automatic=False)
    return visit


def cancel_visit(visit_id: int) -> Visit:
    """
    Cancel a visit and hand its slot to the next bookings in line.

    Cancelling twice is a no-op.

    Raises:
        VisitmanError: VISIT_NOT_FOUND
    """
    visit = _get_visit(visit_id)
    old_status = visit.status
    if old_status == VisitStatus.CANCELLED:
        return visit

    with transaction.atomic():
        visit.status = VisitStatus.CANCELLED
        visit.save(update_fields=["status", "updated_at"])

    logger.info("Visit %s cancelled (was %s)", visit.pk, old_status)
    visit_status_changed.send(
        sender=Visit,
        visit=visit,
        old_status=old_status,
        new_status=VisitStatus.CANCELLED,
    )

    recalculate_guest_visit_statuses(visit.guest_id)
    if visit.host_id:
        recalculate_host_daily_limits(visit.host_id, visit.visit_date)
    return visit


def set_guest_status(guest_id: int, status: str) -> Guest:
    """
    Change a guest's standing by hand and re-decide their upcoming visits.

    Raises:
        VisitmanError: INVALID_STATUS, GUEST_NOT_FOUND
    """
    if status not in GuestStatus.values:
        raise VisitmanError("INVALID_STATUS", status=status)

    try:
        guest = Guest.objects.get(pk=guest_id)
    except Guest.DoesNotExist:
        raise VisitmanError("GUEST_NOT_FOUND", guest_id=guest_id)

    old_status = guest.status
    with transaction.atomic():
        guest.status = status
        guest.status_reason = StatusReason.MANUAL
        guest.save(update_fields=["status", "status_reason", "updated_at"])
        changes = recalculate_guest_visit_statuses(guest.pk, emit=False)
    logger.info("Guest %s status %s -> %s (manual)", guest.pk, old_status, status)
    guest.refresh_from_db()

    if old_status != status:
        guest_status_changed.send(
            sender=Guest,
            person=guest,
            old_status=old_status,
            new_status=status,
        )
    emit_changes(changes)
    return guest


# ======================================================================
# Recalculation
# ======================================================================


def emit_changes(changes: list[StatusChange]) -> None:
    """Send the signal for each recorded transition (visits and people)."""
    for change in changes:
        if not hasattr(change.obj, "visit_date"):
            guest_status_changed.send(
                sender=type(change.obj),
                person=change.obj,
                old_status=change.old_status,
                new_status=change.new_status,
            )
        else:
            visit_status_changed.send(
                sender=type(change.obj),
                visit=change.obj,
                old_status=change.old_status,
                new_status=change.new_status,
            )


def recalculate_guest_visit_statuses(
    guest_id: int,
    today: date | None = None,
    emit: bool = True,
) -> list[StatusChange]:
    """
    Re-decide a guest's upcoming visits and standing.

    Visits are walked in date order. Past visits keep their status and only
    count when attended. Each upcoming visit is approved while the month
    and year still have room and the host has a free slot; otherwise it is
    unapproved. Approved visits keep their host slot. A restricted guest's
    upcoming visits take the guest's status.

    After the walk an active guest whose current month or year is full is
    suspended for the visit limit, and a guest suspended for the visit
    limit whose allowance has room again is reactivated.

    Returns:
        List of StatusChange (visits first, then the guest)
    """
    today = today or timezone.localdate()
    guest = Guest.objects.filter(pk=guest_id).first()
    if guest is None:
        logger.warning("Recalculation skipped: guest %s not found", guest_id)
        return []

    monthly_limit = visitman_settings.MONTHLY_GUEST_LIMIT
    yearly_limit = visitman_settings.YEARLY_GUEST_LIMIT
    used_month: Counter = Counter()
    used_year: Counter = Counter()
    changes: list[StatusChange] = []

    visits = (
        Visit.objects.filter(guest=guest)
        .exclude(status=VisitStatus.CANCELLED)
        .order_by("visit_date", "created_at", "pk")
    )

    with transaction.atomic():
        Guest.objects.select_for_update().get(pk=guest.pk)
        for visit in visits:
            month_key = (visit.visit_date.year, visit.visit_date.month)
            year_key = visit.visit_date.year

            if visit.visit_date < today or visit.sign_in_time is not None:
                if visit.sign_in_time is not None and visit.status == VisitStatus.APPROVED:
                    used_month[month_key] += 1
                    used_year[year_key] += 1
                continue

            if guest.is_restricted:
                new_status = guest.status
            elif used_month[month_key] >= monthly_limit or used_year[year_key] >= yearly_limit:
                new_status = VisitStatus.UNAPPROVED
            elif (
                visit.host_id
                and visit.status != VisitStatus.APPROVED
                and not Gates.check_host_daily_capacity(
                    visit.host_id, visit.visit_date, exclude_visit_id=visit.pk
                )
            ):
                new_status = VisitStatus.UNAPPROVED
            else:
                new_status = VisitStatus.APPROVED

            if new_status == VisitStatus.APPROVED:
                used_month[month_key] += 1
                used_year[year_key] += 1

            if new_status != visit.status:
                changes.append(StatusChange(visit, visit.status, new_status))
                visit.status = new_status
                visit.save(update_fields=["status", "updated_at"])
                logger.info(
                    "Visit %s status %s -> %s", visit.pk, changes[-1].old_status, new_status
                )

        at_limit = (
            used_month[(today.year, today.month)] >= monthly_limit
            or used_year[today.year] >= yearly_limit
        )
        old_guest_status = guest.status
        if guest.status == GuestStatus.ACTIVE and at_limit:
            guest.status = GuestStatus.SUSPENDED
            guest.status_reason = StatusReason.VISIT_LIMIT
        elif guest.is_limit_suspended and not at_limit:
            guest.status = GuestStatus.ACTIVE

        if guest.status != old_guest_status:
            guest.save(update_fields=["status", "status_reason", "updated_at"])
            changes.append(StatusChange(guest, old_guest_status, guest.status))
            logger.info("Guest %s status %s -> %s", guest.pk, old_guest_status, guest.status)

    if emit:
        emit_changes(changes)
    return changes


def recalculate_host_daily_limits(
    host_id: int,
    visit_date: date,
    emit: bool = True,
) -> list[StatusChange]:
    """
    Re-queue a host's bookings for one day.

    Bookings are served in the order they were made: each gets one of the
    DAILY_HOST_LIMIT slots if the guest still has allowance, otherwise it
    stays unapproved. Signed-in visits keep their slot, and suspended or
    banned bookings hold theirs. Sends
    host_limit_exceeded when bookings are left waiting for a slot.
    """
    host = Member.objects.filter(pk=host_id).first()
    if host is None:
        return []

    slots = visitman_settings.DAILY_HOST_LIMIT - (
        Visit.objects.filter(
            host_id=host_id,
            visit_date=visit_date,
            status__in=[VisitStatus.SUSPENDED, VisitStatus.BANNED],
        ).count()
    )
    waiting = 0
    changes: list[StatusChange] = []

    bookings = (
        Visit.objects.filter(
            host_id=host_id,
            visit_date=visit_date,
            status__in=[VisitStatus.APPROVED, VisitStatus.UNAPPROVED],
        )
        .select_related("guest")
        .order_by("created_at", "pk")
    )

    with transaction.atomic():
        Member.objects.select_for_update().get(pk=host_id)
        for visit in bookings:
            if visit.sign_in_time is not None:
                slots -= 1
                continue

            if slots <= 0:
                new_status = VisitStatus.UNAPPROVED
                waiting += 1
            elif Gates.check_guest_allowance(visit.guest_id, visit_date, exclude_visit_id=visit.pk):
                new_status = VisitStatus.APPROVED
                slots -= 1
            else:
                new_status = VisitStatus.UNAPPROVED

            if new_status != visit.status:
                changes.append(StatusChange(visit, visit.status, new_status))
                visit.status = new_status
                visit.save(update_fields=["status", "updated_at"])

    if emit:
        emit_changes(changes)
        if waiting:
            host_limit_exceeded.send(
                sender=Member,
                host=host,
                visit_date=visit_date,
                unapproved_count=waiting,
            )
    return changes


# ======================================================================
# Scheduled jobs
# ======================================================================


def auto_signout_at(visit_date: date) -> datetime:
    signout_time = time.fromisoformat(visitman_settings.AUTO_SIGNOUT_TIME)
    return timezone.make_aware(datetime.combine(visit_date, signout_time))


def auto_sign_out(today: date | None = None) -> int:
    """
    Close visits left open at the end of the day.

    Visits on or before today that were signed in but never signed out get
    a sign-out at AUTO_SIGNOUT_TIME on their visit date.

    Returns:
        Number of visits signed out
    """
    today = today or timezone.localdate()
    open_visits = list(
        Visit.objects.filter(
            sign_in_time__isnull=False,
            sign_out_time__isnull=True,
            visit_date__lte=today,
        ).select_related("guest")
    )

    for visit in open_visits:
        visit.sign_out_time = auto_signout_at(visit.visit_date)
        visit.save(update_fields=["sign_out_time", "updated_at"])
        visit_signed_out.send(sender=Visit, visit=visit, automatic=True)

    for guest_id in {visit.guest_id for visit in open_visits}:
        recalculate_guest_visit_statuses(guest_id, today=today)

    if open_visits:
        logger.info("Auto signed out %d visit(s)", len(open_visits))
    return len(open_visits)


def _release_limit_suspensions(today: date | None = None) -> int:
    released = 0
    guest_ids = Guest.objects.filter(
        status=GuestStatus.SUSPENDED,
        status_reason=StatusReason.VISIT_LIMIT,
    ).values_list("pk", flat=True)
    for guest_id in list(guest_ids):
        changes = recalculate_guest_visit_statuses(guest_id, today=today)
        released += sum(
            1
            for change in changes
            if isinstance(change.obj, Guest) and change.new_status == GuestStatus.ACTIVE
        )
    return released


def reset_monthly_limits(today: date | None = None) -> int:
    """Reactivate guests suspended for the visit limit once the new month frees their allowance."""
    released = _release_limit_suspensions(today)
    logger.info("Monthly limit reset: %d guest(s) reactivated", released)
    return released


def reset_yearly_limits(today: date | None = None) -> int:
    """Reactivate guests suspended for the visit limit once the new year frees their allowance."""
    released = _release_limit_suspensions(today)
    logger.info("Yearly limit reset: %d guest(s) reactivated", released)
    return released


# ======================================================================
# Presentation helpers
# ======================================================================


def display_status(visit, today: date | None = None) -> str:
    """
    Status shown to staff: the stored decision for restricted visits,
    otherwise derived from the date and attendance.

    Returns:
        scheduled, missed, completed, pending, active, or the stored status
    """
    if visit.status != VisitStatus.APPROVED:
        return visit.status

    today = today or timezone.localdate()
    if visit.visit_date > today:
        return "scheduled"
    if visit.visit_date < today:
        return "completed" if visit.sign_in_time else "missed"
    if visit.sign_in_time is None:
        return "pending"
    if visit.sign_out_time is None:
        return "active"
    return "completed"


def visits_for_host(host_id: int, limit: int = 10, offset: int = 0) -> list[Visit]:
    """A host's visits, most recent first (paginated)."""
    qs = Visit.objects.filter(host_id=host_id).select_related("guest")
    return list(qs.order_by("-visit_date", "-created_at")[offset : offset + limit])


def count_visits_for_host(host_id: int) -> int:
    return Visit.objects.filter(host_id=host_id).count()
