"""Tests for the visits service: booking decisions, attendance, recalculation."""

from datetime import date, datetime, timedelta
from unittest import mock

import pytest
from django.db.models.query import QuerySet
from django.utils import timezone

from visitman.exceptions import VisitmanError
from visitman.gates import GateError
from visitman.models import Guest, GuestStatus, Member, StatusReason, Visit, VisitStatus
from visitman.services import visits
from visitman.signals import (
    guest_registered,
    guest_status_changed,
    host_limit_exceeded,
    visit_signed_in,
    visit_signed_out,
    visit_status_changed,
)

pytestmark = pytest.mark.django_db


def make_guest(index, **kwargs):
    return Guest.objects.create(
        first_name=f"Guest{index}",
        last_name="Test",
        phone_number=f"07220001{index:02d}",
        **kwargs,
    )


def book(guest, host, visit_date, **kwargs):
    return Visit.objects.create(guest=guest, host=host, visit_date=visit_date, **kwargs)


class TestRegisterGuest:
    """Tests for register_guest()."""

    def test_new_guest_is_approved(self, host, future_day, catch_signal):
        registered = catch_signal(guest_registered)

        guest, visit = visits.register_guest(
            first_name="Mary",
            last_name="Njeri",
            phone_number="0712 345 678",
            visit_date=future_day,
            host_id=host.pk,
        )

        assert guest.phone_number == "254712345678"
        assert guest.status == GuestStatus.ACTIVE
        assert visit.status == VisitStatus.APPROVED
        assert visit.host == host
        assert registered[0][1]["guest"] == guest
        assert registered[0][1]["visit"] == visit

    def test_known_guest_is_reused(self, host, guest, future_day):
        found, visit = visits.register_guest(
            first_name="Someone",
            last_name="Else",
            phone_number="+254 722 000 001",
            visit_date=future_day,
            host_id=host.pk,
        )

        assert found == guest
        assert Guest.objects.count() == 1
        assert visit.guest == guest

    def test_host_or_courtesy_required(self, future_day):
        with pytest.raises(VisitmanError) as exc:
            visits.register_guest("Mary", "Njeri", "0712345678", future_day)
        assert exc.value.code == "HOST_NOT_FOUND"

    def test_inactive_host_rejected(self, host, future_day):
        host.is_active = False
        host.save()

        with pytest.raises(VisitmanError) as exc:
            visits.register_guest("Mary", "Njeri", "0712345678", future_day, host_id=host.pk)
        assert exc.value.code == "HOST_NOT_FOUND"

    def test_courtesy_visit_has_no_host(self, future_day):
        _, visit = visits.register_guest(
            "Mary", "Njeri", "0712345678", future_day, courtesy="General Manager"
        )

        assert visit.host is None
        assert visit.courtesy == "General Manager"
        assert visit.status == VisitStatus.APPROVED

    def test_invalid_guest_type(self, host, future_day):
        with pytest.raises(VisitmanError) as exc:
            visits.register_guest("Mary", "Njeri", "0712345678", future_day, host_id=host.pk, guest_type="vip")

        assert exc.value.code == "INVALID_GUEST_TYPE"
        assert Guest.objects.count() == 0

    def test_invalid_phone(self, host, future_day):
        with pytest.raises(VisitmanError) as exc:
            visits.register_guest("Mary", "Njeri", "12345", future_day, host_id=host.pk)

        assert exc.value.code == "INVALID_PHONE"
        assert Guest.objects.count() == 0

    def test_duplicate_visit_rejected(self, host, guest, future_day):
        visits.register_visit(guest.pk, future_day, host_id=host.pk)

        with pytest.raises(VisitmanError) as exc:
            visits.register_visit(guest.pk, future_day, host_id=host.pk)
        assert exc.value.code == "DUPLICATE_VISIT"

    def test_unknown_guest(self, host, future_day):
        with pytest.raises(VisitmanError) as exc:
            visits.register_visit(999, future_day, host_id=host.pk)
        assert exc.value.code == "GUEST_NOT_FOUND"


class TestBookingDecision:
    """Tests for the booking decision (host capacity, then guest allowance)."""

    def test_host_daily_limit(self, host, future_day, catch_signal):
        exceeded = catch_signal(host_limit_exceeded)
        for index in range(4):
            visit = visits.register_visit(make_guest(index).pk, future_day, host_id=host.pk)
            assert visit.status == VisitStatus.APPROVED

        fifth = visits.register_visit(make_guest(4).pk, future_day, host_id=host.pk)

        assert fifth.status == VisitStatus.UNAPPROVED
        assert exceeded[-1][1]["host"] == host
        assert exceeded[-1][1]["unapproved_count"] == 1
        assert visits.daily_visits_to_host(host.pk, future_day) == 4

    def test_host_limit_is_per_host(self, host, other_host, future_day):
        for index in range(4):
            visits.register_visit(make_guest(index).pk, future_day, host_id=host.pk)

        visit = visits.register_visit(make_guest(4).pk, future_day, host_id=other_host.pk)
        assert visit.status == VisitStatus.APPROVED

    def test_monthly_limit_suspends_guest(self, host, guest, future_day, catch_signal):
        status_changes = catch_signal(guest_status_changed)
        for offset in range(4):
            visit = visits.register_visit(guest.pk, future_day + timedelta(days=offset), host_id=host.pk)
            assert visit.status == VisitStatus.APPROVED

        fifth = visits.register_visit(guest.pk, future_day + timedelta(days=10), host_id=host.pk)
        guest.refresh_from_db()

        assert fifth.status == VisitStatus.SUSPENDED
        assert guest.status == GuestStatus.SUSPENDED
        assert guest.status_reason == StatusReason.VISIT_LIMIT
        assert status_changes[-1][1]["old_status"] == GuestStatus.ACTIVE
        assert status_changes[-1][1]["new_status"] == GuestStatus.SUSPENDED

    def test_yearly_limit(self, settings, host, guest, future_day):
        settings.VISITMAN = {**settings.VISITMAN, "YEARLY_GUEST_LIMIT": 2}
        visits.register_visit(guest.pk, future_day, host_id=host.pk)
        visits.register_visit(guest.pk, future_day + timedelta(days=40), host_id=host.pk)

        third = visits.register_visit(guest.pk, future_day + timedelta(days=80), host_id=host.pk)
        assert third.status == VisitStatus.SUSPENDED

    def test_host_limit_checked_before_allowance(self, host, guest, future_day):
        for offset in range(4):
            visits.register_visit(guest.pk, future_day + timedelta(days=offset), host_id=host.pk)
        for index in range(4):
            visits.register_visit(make_guest(index).pk, future_day + timedelta(days=10), host_id=host.pk)

        visit = visits.register_visit(guest.pk, future_day + timedelta(days=10), host_id=host.pk)
        assert visit.status == VisitStatus.UNAPPROVED

    def test_cancelled_and_unapproved_visits_do_not_count(self, host, guest, future_day):
        book(guest, host, future_day, status=VisitStatus.CANCELLED)
        book(guest, host, future_day + timedelta(days=1), status=VisitStatus.UNAPPROVED)

        assert visits.monthly_visits(guest.pk, future_day) == 0
        assert visits.yearly_visits(guest.pk, future_day) == 0
        assert visits.daily_visits_to_host(host.pk, future_day) == 0

    def test_suspended_booking_holds_host_slot(self, host, guest, future_day):
        for offset in range(1, 5):
            visits.register_visit(guest.pk, future_day + timedelta(days=offset), host_id=host.pk)
        over = visits.register_visit(guest.pk, future_day, host_id=host.pk)
        assert over.status == VisitStatus.SUSPENDED

        booked = [
            visits.register_visit(make_guest(index).pk, future_day, host_id=host.pk)
            for index in range(4)
        ]

        assert [visit.status for visit in booked] == [VisitStatus.APPROVED] * 3 + [VisitStatus.UNAPPROVED]
        assert visits.daily_visits_to_host(host.pk, future_day) == 4

    def test_host_requeue_keeps_suspended_slot(self, host, guest, future_day):
        book(guest, host, future_day, status=VisitStatus.SUSPENDED)
        waiting = [book(make_guest(index), host, future_day, status=VisitStatus.UNAPPROVED) for index in range(4)]

        visits.recalculate_host_daily_limits(host.pk, future_day)

        statuses = [Visit.objects.get(pk=visit.pk).status for visit in waiting]
        assert statuses == [VisitStatus.APPROVED] * 3 + [VisitStatus.UNAPPROVED]

    def test_booking_locks_host_then_guest(self, host, guest, future_day):
        locked = []
        select_for_update = QuerySet.select_for_update

        def record(queryset, *args, **kwargs):
            locked.append(queryset.model)
            return select_for_update(queryset, *args, **kwargs)

        with mock.patch.object(QuerySet, "select_for_update", record):
            visits.register_visit(guest.pk, future_day, host_id=host.pk)

        assert locked[:2] == [Member, Guest]

    def test_banned_guest_booking_takes_guest_status(self, host, guest, future_day):
        guest.status = GuestStatus.BANNED
        guest.save()

        visit = visits.register_visit(guest.pk, future_day, host_id=host.pk)
        assert visit.status == VisitStatus.BANNED


class TestSignInOut:
    """Tests for sign_in() and sign_out()."""

    def test_sign_in(self, host, guest, today, catch_signal):
        signed_in = catch_signal(visit_signed_in)
        visit = visits.register_visit(guest.pk, today, host_id=host.pk)

        visit = visits.sign_in(visit.pk, id_number="12345678")

        assert visit.sign_in_time is not None
        assert visit.is_signed_in
        assert signed_in[0][1]["visit"] == visit

    def test_sign_in_twice(self, host, guest, today):
        visit = visits.register_visit(guest.pk, today, host_id=host.pk)
        visits.sign_in(visit.pk)

        with pytest.raises(GateError) as exc:
            visits.sign_in(visit.pk)
        assert exc.value.gate_name == "G4_SignInEligibility"

    def test_sign_in_wrong_day(self, host, guest, future_day):
        visit = visits.register_visit(guest.pk, future_day, host_id=host.pk)

        with pytest.raises(GateError) as exc:
            visits.sign_in(visit.pk)
        assert "today" in exc.value.message

    def test_sign_in_id_mismatch(self, host, guest, today):
        visit = visits.register_visit(guest.pk, today, host_id=host.pk)

        with pytest.raises(VisitmanError) as exc:
            visits.sign_in(visit.pk, id_number="99999999")
        assert exc.value.code == "ID_NUMBER_MISMATCH"

    def test_sign_in_records_missing_id(self, host, today):
        guest = make_guest(1)
        visit = visits.register_visit(guest.pk, today, host_id=host.pk)

        visits.sign_in(visit.pk, id_number="55555555")
        guest.refresh_from_db()
        assert guest.id_number == "55555555"

    def test_sign_in_id_taken(self, host, guest, today):
        other = make_guest(1)
        visit = visits.register_visit(other.pk, today, host_id=host.pk)

        with pytest.raises(VisitmanError) as exc:
            visits.sign_in(visit.pk, id_number=guest.id_number)
        assert exc.value.code == "DUPLICATE_GUEST"

    def test_banned_guest_cannot_sign_in(self, host, guest, today):
        visit = visits.register_visit(guest.pk, today, host_id=host.pk)
        Guest.objects.filter(pk=guest.pk).update(status=GuestStatus.BANNED)

        with pytest.raises(GateError) as exc:
            visits.sign_in(visit.pk)
        assert exc.value.gate_name == "G1_GuestStanding"

    def test_limit_suspended_guest_can_attend_approved_visit(self, host, guest, today):
        visit = visits.register_visit(guest.pk, today, host_id=host.pk)
        Guest.objects.filter(pk=guest.pk).update(
            status=GuestStatus.SUSPENDED,
            status_reason=StatusReason.VISIT_LIMIT,
        )

        visit = visits.sign_in(visit.pk)
        assert visit.sign_in_time is not None

    def test_full_month_suspends_but_booked_visits_stay_attendable(self, settings, host, guest, today):
        settings.VISITMAN = {**settings.VISITMAN, "MONTHLY_GUEST_LIMIT": 1}
        visit = visits.register_visit(guest.pk, today, host_id=host.pk)
        visits.recalculate_guest_visit_statuses(guest.pk)

        guest.refresh_from_db()
        assert guest.is_limit_suspended
        assert visits.sign_in(visit.pk).sign_in_time is not None

    def test_unapproved_visit_cannot_sign_in(self, host, guest, today):
        visit = book(guest, host, today, status=VisitStatus.UNAPPROVED)

        with pytest.raises(GateError):
            visits.sign_in(visit.pk)

    def test_sign_out(self, host, guest, today, catch_signal):
        signed_out = catch_signal(visit_signed_out)
        visit = visits.register_visit(guest.pk, today, host_id=host.pk)

        with pytest.raises(VisitmanError) as exc:
            visits.sign_out(visit.pk)
        assert exc.value.code == "NOT_SIGNED_IN"

        visits.sign_in(visit.pk)
        visit = visits.sign_out(visit.pk)
        assert visit.sign_out_time is not None
        assert signed_out[0][1]["automatic"] is False

        with pytest.raises(VisitmanError) as exc:
            visits.sign_out(visit.pk)
        assert exc.value.code == "ALREADY_SIGNED_OUT"

    def test_unknown_visit(self, db):
        with pytest.raises(VisitmanError) as exc:
            visits.sign_in(12345)
        assert exc.value.code == "VISIT_NOT_FOUND"


class TestCancelAndStatus:
    """Tests for cancel_visit() and set_guest_status()."""

    def test_cancel_frees_host_slot(self, host, future_day, catch_signal):
        booked = [visits.register_visit(make_guest(i).pk, future_day, host_id=host.pk) for i in range(5)]
        assert booked[4].status == VisitStatus.UNAPPROVED
        changes = catch_signal(visit_status_changed)

        visits.cancel_visit(booked[0].pk)

        booked[4].refresh_from_db()
        assert booked[4].status == VisitStatus.APPROVED
        assert changes[0][1]["new_status"] == VisitStatus.CANCELLED
        assert changes[-1][1]["visit"] == booked[4]
        assert changes[-1][1]["new_status"] == VisitStatus.APPROVED

    def test_cancel_twice_is_noop(self, host, guest, future_day, catch_signal):
        visit = visits.register_visit(guest.pk, future_day, host_id=host.pk)
        visits.cancel_visit(visit.pk)
        changes = catch_signal(visit_status_changed)

        visit = visits.cancel_visit(visit.pk)
        assert visit.status == VisitStatus.CANCELLED
        assert changes == []

    def test_ban_and_restore(self, host, guest, future_day):
        visit = visits.register_visit(guest.pk, future_day, host_id=host.pk)

        guest = visits.set_guest_status(guest.pk, GuestStatus.BANNED)
        visit.refresh_from_db()
        assert guest.status == GuestStatus.BANNED
        assert guest.status_reason == StatusReason.MANUAL
        assert visit.status == VisitStatus.BANNED

        guest = visits.set_guest_status(guest.pk, GuestStatus.ACTIVE)
        visit.refresh_from_db()
        assert guest.status == GuestStatus.ACTIVE
        assert visit.status == VisitStatus.APPROVED

    def test_invalid_status(self, guest):
        with pytest.raises(VisitmanError) as exc:
            visits.set_guest_status(guest.pk, "vip")
        assert exc.value.code == "INVALID_STATUS"

    def test_unknown_guest(self, db):
        with pytest.raises(VisitmanError) as exc:
            visits.set_guest_status(999, GuestStatus.BANNED)
        assert exc.value.code == "GUEST_NOT_FOUND"


class TestRecalculation:
    """Tests for recalculate_guest_visit_statuses() and recalculate_host_daily_limits()."""

    def test_over_allowance_becomes_unapproved(self, host, guest, future_day):
        booked = [book(guest, host, future_day + timedelta(days=offset)) for offset in range(5)]

        changes = visits.recalculate_guest_visit_statuses(guest.pk, today=future_day - timedelta(days=1))

        statuses = [Visit.objects.get(pk=visit.pk).status for visit in booked]
        assert statuses == [VisitStatus.APPROVED] * 4 + [VisitStatus.UNAPPROVED]
        assert [change.obj.pk for change in changes] == [booked[4].pk]

    def test_full_current_month_suspends_guest(self, host, guest, future_day):
        for offset in range(4):
            book(guest, host, future_day + timedelta(days=offset))

        changes = visits.recalculate_guest_visit_statuses(guest.pk, today=future_day)
        guest.refresh_from_db()

        assert guest.status == GuestStatus.SUSPENDED
        assert guest.status_reason == StatusReason.VISIT_LIMIT
        assert changes[-1].obj == guest

    def test_missed_visits_give_allowance_back(self, host, guest, future_day):
        for offset in range(4):
            book(guest, host, future_day + timedelta(days=offset))
        later = book(guest, host, future_day + timedelta(days=20), status=VisitStatus.UNAPPROVED)

        visits.recalculate_guest_visit_statuses(guest.pk, today=future_day + timedelta(days=10))

        later.refresh_from_db()
        assert later.status == VisitStatus.APPROVED

    def test_attended_visits_keep_counting(self, host, guest, future_day):
        signed_in = timezone.make_aware(datetime.combine(future_day, datetime.min.time()))
        for offset in range(4):
            book(guest, host, future_day + timedelta(days=offset), sign_in_time=signed_in)
        later = book(guest, host, future_day + timedelta(days=20))

        visits.recalculate_guest_visit_statuses(guest.pk, today=future_day + timedelta(days=10))

        later.refresh_from_db()
        guest.refresh_from_db()
        assert later.status == VisitStatus.UNAPPROVED
        assert guest.status == GuestStatus.SUSPENDED

    def test_no_emit(self, host, guest, future_day, catch_signal):
        changes_sent = catch_signal(visit_status_changed)
        for offset in range(5):
            book(guest, host, future_day + timedelta(days=offset))

        changes = visits.recalculate_guest_visit_statuses(
            guest.pk, today=future_day - timedelta(days=1), emit=False
        )
        assert len(changes) == 1
        assert changes_sent == []

    def test_host_queue_in_booking_order(self, host, future_day, catch_signal):
        exceeded = catch_signal(host_limit_exceeded)
        booked = [book(make_guest(i), host, future_day) for i in range(6)]

        visits.recalculate_host_daily_limits(host.pk, future_day)

        statuses = [Visit.objects.get(pk=visit.pk).status for visit in booked]
        assert statuses == [VisitStatus.APPROVED] * 4 + [VisitStatus.UNAPPROVED] * 2
        assert exceeded[0][1]["unapproved_count"] == 2


class TestScheduledJobs:
    """Tests for auto_sign_out() and the limit resets."""

    def test_auto_sign_out(self, host, guest, today, catch_signal):
        signed_out = catch_signal(visit_signed_out)
        yesterday = today - timedelta(days=1)
        visit = book(guest, host, yesterday, sign_in_time=timezone.now() - timedelta(days=1))

        assert visits.auto_sign_out(today=today) == 1

        visit.refresh_from_db()
        assert visit.sign_out_time == visits.auto_signout_at(yesterday)
        assert timezone.localtime(visit.sign_out_time).time().isoformat() == "23:59:59"
        assert signed_out[0][1]["automatic"] is True

    def test_auto_sign_out_leaves_closed_visits(self, host, guest, today):
        now = timezone.now()
        book(guest, host, today, sign_in_time=now, sign_out_time=now)
        assert visits.auto_sign_out(today=today) == 0

    def test_monthly_reset_releases_guest(self, host, guest, future_day):
        signed_in = timezone.make_aware(datetime.combine(future_day, datetime.min.time()))
        for offset in range(4):
            book(guest, host, future_day + timedelta(days=offset), sign_in_time=signed_in)
        Guest.objects.filter(pk=guest.pk).update(
            status=GuestStatus.SUSPENDED,
            status_reason=StatusReason.VISIT_LIMIT,
        )

        assert visits.reset_monthly_limits(today=future_day + timedelta(days=5)) == 0
        assert visits.reset_monthly_limits(today=date(future_day.year, 4, 1)) == 1

        guest.refresh_from_db()
        assert guest.status == GuestStatus.ACTIVE

    def test_reset_ignores_manual_suspension(self, guest, future_day):
        Guest.objects.filter(pk=guest.pk).update(status=GuestStatus.SUSPENDED)

        assert visits.reset_yearly_limits(today=future_day) == 0
        guest.refresh_from_db()
        assert guest.status == GuestStatus.SUSPENDED


class TestDisplayStatus:
    """Tests for display_status()."""

    @pytest.mark.parametrize(
        "offset,signed_in,signed_out,expected",
        [
            (1, False, False, "scheduled"),
            (-1, False, False, "missed"),
            (-1, True, True, "completed"),
            (0, False, False, "pending"),
            (0, True, False, "active"),
            (0, True, True, "completed"),
        ],
    )
    def test_approved(self, host, guest, today, offset, signed_in, signed_out, expected):
        now = timezone.now()
        visit = book(
            guest,
            host,
            today + timedelta(days=offset),
            sign_in_time=now if signed_in else None,
            sign_out_time=now if signed_out else None,
        )
        assert visits.display_status(visit, today=today) == expected

    def test_stored_status_shown(self, host, guest, today):
        visit = book(guest, host, today, status=VisitStatus.UNAPPROVED)
        assert visits.display_status(visit, today=today) == "unapproved"

    def test_visits_for_host(self, host, guest, future_day):
        for offset in range(3):
            book(guest, host, future_day + timedelta(days=offset))

        page = visits.visits_for_host(host.pk, limit=2)
        assert [visit.visit_date for visit in page] == [
            future_day + timedelta(days=2),
            future_day + timedelta(days=1),
        ]
        assert visits.count_visits_for_host(host.pk) == 3
