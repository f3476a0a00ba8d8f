"""Admin smoke tests: changelists render and actions go through the services."""

import pytest
from django.urls import reverse

from visitman.contrib.cases.models import Case
from visitman.models import GuestStatus, StatusReason, Visit, VisitStatus

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize(
    "model",
    [
        "visitman_member",
        "visitman_guest",
        "visitman_visit",
        "visitman_reciprocatingclub",
        "visitman_reciprocatingmember",
        "visitman_reciprocalvisit",
        "visitman_sms_smslog",
        "visitman_sms_gatewaybalance",
        "visitman_audit_auditentry",
        "visitman_cases_case",
        "visitman_cases_task",
    ],
)
def test_changelist(admin_client, host, guest, reciprocating_member, future_day, model):
    Visit.objects.create(guest=guest, host=host, visit_date=future_day)
    resp = admin_client.get(reverse(f"admin:{model}_changelist"))
    assert resp.status_code == 200


def test_guest_change_page(admin_client, guest):
    resp = admin_client.get(reverse("admin:visitman_guest_change", args=[guest.pk]))
    assert resp.status_code == 200


def test_ban_action(admin_client, host, guest, future_day):
    visit = Visit.objects.create(guest=guest, host=host, visit_date=future_day)

    admin_client.post(
        reverse("admin:visitman_guest_changelist"),
        {"action": "ban_guests", "_selected_action": [guest.pk]},
    )

    guest.refresh_from_db()
    visit.refresh_from_db()
    assert guest.status == GuestStatus.BANNED
    assert guest.status_reason == StatusReason.MANUAL
    assert visit.status == VisitStatus.BANNED


def test_cancel_action(admin_client, host, guest, future_day):
    visit = Visit.objects.create(guest=guest, host=host, visit_date=future_day)

    admin_client.post(
        reverse("admin:visitman_visit_changelist"),
        {"action": "cancel_visits", "_selected_action": [visit.pk]},
    )

    visit.refresh_from_db()
    assert visit.status == VisitStatus.CANCELLED


def test_case_add_assigns_number(admin_client):
    resp = admin_client.post(
        reverse("admin:visitman_cases_case_add"),
        {
            "title": "Land dispute",
            "status": "open",
            "reference": "",
            "notes": "",
            "tasks-TOTAL_FORMS": "0",
            "tasks-INITIAL_FORMS": "0",
        },
    )

    assert resp.status_code == 302
    assert Case.objects.get().number.startswith("CASE-")
