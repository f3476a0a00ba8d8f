"""Reports service - attendance statistics and exports.

Every report covers an inclusive date range and is broken down by
category: the three guest types plus reciprocating members.
"""

import csv
import logging
from datetime import date, timedelta

from django.db.models import Count

from visitman.models import GuestType, ReciprocalVisit, Visit
from visitman.utils import format_duration

logger = logging.getLogger(__name__)

RECIPROCATING = "reciprocating"
CATEGORIES = [*GuestType.values, RECIPROCATING]

CSV_HEADER = ["category", "name", "phone", "visit_date", "sign_in", "sign_out", "duration", "status"]


def _visits(category: str, date_from: date, date_to: date):
    if category == RECIPROCATING:
        return ReciprocalVisit.objects.filter(visit_date__range=(date_from, date_to))
    return Visit.objects.filter(
        guest__guest_type=category,
        visit_date__range=(date_from, date_to),
    )


def _person_field(category: str) -> str:
    return "member" if category == RECIPROCATING else "guest"


def date_range(date_from: date, date_to: date) -> list[date]:
    days = (date_to - date_from).days
    return [date_from + timedelta(days=offset) for offset in range(days + 1)]


def statistics(date_from: date, date_to: date) -> dict:
    """
    People with a booking and attended visits per category.

    Returns:
        {"guest": {"total": int, "visited": int}, ..., "reciprocating": {...}}
    """
    stats = {}
    for category in CATEGORIES:
        visits = _visits(category, date_from, date_to)
        stats[category] = {
            "total": visits.order_by().values(_person_field(category)).distinct().count(),
            "visited": visits.filter(sign_in_time__isnull=False).count(),
        }
    return stats


def daily_counts(date_from: date, date_to: date) -> dict:
    """
    Attended visits per day per category, zero-filled.

    Returns:
        {"labels": ["Jan 01", ...], "guest": [int, ...], ...}
    """
    dates = date_range(date_from, date_to)
    result: dict = {"labels": [day.strftime("%b %d") for day in dates]}

    for category in CATEGORIES:
        rows = (
            _visits(category, date_from, date_to)
            .filter(sign_in_time__isnull=False)
            .order_by()
            .values("visit_date")
            .annotate(count=Count("pk"))
        )
        by_day = {row["visit_date"]: row["count"] for row in rows}
        result[category] = [by_day.get(day, 0) for day in dates]
    return result


def distribution(date_from: date, date_to: date) -> dict:
    """Attended visits per category over the range."""
    return {
        category: _visits(category, date_from, date_to)
        .filter(sign_in_time__isnull=False)
        .count()
        for category in CATEGORIES
    }


def visit_rows(category: str, date_from: date, date_to: date) -> list[dict]:
    """Detailed visit rows for one category, newest first."""
    person = _person_field(category)
    visits = (
        _visits(category, date_from, date_to)
        .select_related(person)
        .order_by("-visit_date", "-sign_in_time")
    )
    rows = []
    for visit in visits:
        who = getattr(visit, person)
        rows.append(
            {
                "category": category,
                "name": who.name,
                "phone": who.phone_number,
                "visit_date": visit.visit_date,
                "sign_in": visit.sign_in_time,
                "sign_out": visit.sign_out_time,
                "duration": format_duration(visit.sign_in_time, visit.sign_out_time),
                "status": visit.status,
            }
        )
    return rows


def export_visits_csv(date_from: date, date_to: date, stream, categories=None) -> int:
    """
    Write visit rows as CSV to a text stream (file or HttpResponse).

    Returns:
        Number of data rows written
    """
    writer = csv.writer(stream)
    writer.writerow(CSV_HEADER)
    written = 0
    for category in categories or CATEGORIES:
        for row in visit_rows(category, date_from, date_to):
            writer.writerow(
                [
                    row["category"],
                    row["name"],
                    row["phone"],
                    row["visit_date"].isoformat(),
                    row["sign_in"].isoformat() if row["sign_in"] else "",
                    row["sign_out"].isoformat() if row["sign_out"] else "",
                    row["duration"],
                    row["status"],
                ]
            )
            written += 1
    logger.info("Exported %d visit row(s) for %s..%s", written, date_from, date_to)
    return written
