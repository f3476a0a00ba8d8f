"""Tests for the reports service."""

import io
from datetime import datetime, timedelta

import pytest
from django.utils import timezone

from visitman.models import Guest, GuestType, ReciprocalVisit, Visit
from visitman.services import reports

pytestmark = pytest.mark.django_db


@pytest.fixture
def attendance(host, guest, reciprocating_member, future_day):
    """Two guest visits (one attended), one supplier visit, one reciprocal visit."""
    signed_in = timezone.make_aware(datetime.combine(future_day, datetime.min.time()).replace(hour=10))
    signed_out = signed_in + timedelta(hours=2, minutes=5)
    supplier = Guest.objects.create(
        guest_type=GuestType.SUPPLIER,
        first_name="Fresh",
        last_name="Farms",
        phone_number="0700111222",
    )
    Visit.objects.create(
        guest=guest, host=host, visit_date=future_day, sign_in_time=signed_in, sign_out_time=signed_out
    )
    Visit.objects.create(guest=guest, host=host, visit_date=future_day + timedelta(days=1))
    Visit.objects.create(guest=supplier, courtesy="Kitchen", visit_date=future_day, sign_in_time=signed_in)
    ReciprocalVisit.objects.create(
        member=reciprocating_member, visit_date=future_day + timedelta(days=1), sign_in_time=signed_in
    )


class TestReports:
    def test_statistics(self, attendance, future_day):
        stats = reports.statistics(future_day, future_day + timedelta(days=1))

        assert stats["guest"] == {"total": 1, "visited": 1}
        assert stats["supplier"] == {"total": 1, "visited": 1}
        assert stats["accommodation"] == {"total": 0, "visited": 0}
        assert stats["reciprocating"] == {"total": 1, "visited": 1}

    def test_daily_counts(self, attendance, future_day):
        counts = reports.daily_counts(future_day, future_day + timedelta(days=2))

        assert counts["labels"] == [
            (future_day + timedelta(days=offset)).strftime("%b %d") for offset in range(3)
        ]
        assert counts["guest"] == [1, 0, 0]
        assert counts["reciprocating"] == [0, 1, 0]

    def test_distribution(self, attendance, future_day):
        assert reports.distribution(future_day, future_day) == {
            "guest": 1,
            "accommodation": 0,
            "supplier": 1,
            "reciprocating": 0,
        }

    def test_visit_rows(self, attendance, future_day):
        rows = reports.visit_rows("guest", future_day, future_day)

        assert len(rows) == 1
        assert rows[0]["name"] == "John Doe"
        assert rows[0]["duration"] == "2:05"

    def test_export_csv(self, attendance, future_day):
        stream = io.StringIO()

        written = reports.export_visits_csv(future_day, future_day + timedelta(days=1), stream)

        lines = stream.getvalue().splitlines()
        assert written == 4
        assert lines[0] == ",".join(reports.CSV_HEADER)
        assert len(lines) == 5

    def test_export_selected_categories(self, attendance, future_day):
        stream = io.StringIO()
        written = reports.export_visits_csv(future_day, future_day, stream, categories=["supplier"])
        assert written == 1
        assert stream.getvalue().splitlines()[1].startswith("supplier,Fresh Farms,254700111222,")
