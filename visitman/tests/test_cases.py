"""Tests for the cases contrib."""

from datetime import timedelta

import pytest
from django.core import mail
from django.utils import timezone

from visitman.contrib.cases import CaseService, TaskService
from visitman.contrib.cases.models import CaseStatus, Task, TaskStatus
from visitman.exceptions import VisitmanError

pytestmark = pytest.mark.django_db


@pytest.fixture
def lawyer(django_user_model):
    return django_user_model.objects.create_user(
        username="advocate",
        email="advocate@example.com",
        first_name="Grace",
        last_name="Achieng",
    )


@pytest.fixture
def client_user(django_user_model):
    return django_user_model.objects.create_user(username="client", email="client@example.com")


class TestCaseService:
    """Tests for CaseService."""

    def test_numbering(self, lawyer, client_user):
        year = timezone.localdate().year
        first = CaseService.create_case("Land dispute", client=client_user, employees=[lawyer])
        second = CaseService.create_case("Contract review")

        assert first.number == f"CASE-{year}-001"
        assert second.number == f"CASE-{year}-002"
        assert list(first.employees.all()) == [lawyer]
        assert CaseService.get(first.number) == first
        assert CaseService.get("CASE-1999-001") is None

    def test_next_number_per_year(self, db):
        CaseService.create_case("This year")
        assert CaseService.next_number(year=1999) == "CASE-1999-001"

    def test_set_status(self, db):
        case = CaseService.create_case("Appeal")

        case = CaseService.set_status(case.pk, CaseStatus.CLOSED)
        assert case.status == CaseStatus.CLOSED

        with pytest.raises(VisitmanError) as exc:
            CaseService.set_status(case.pk, "won")
        assert exc.value.code == "INVALID_STATUS"

        with pytest.raises(VisitmanError) as exc:
            CaseService.set_status(999, CaseStatus.OPEN)
        assert exc.value.code == "CASE_NOT_FOUND"

    def test_upcoming_hearings(self, db):
        today = timezone.localdate()
        soon = CaseService.create_case("Soon", hearing_date=today + timedelta(days=3))
        CaseService.create_case("Later", hearing_date=today + timedelta(days=30))
        closed = CaseService.create_case("Closed", hearing_date=today + timedelta(days=1))
        CaseService.set_status(closed.pk, CaseStatus.CLOSED)

        assert CaseService.upcoming_hearings(today=today) == [soon]

    def test_cases_for(self, lawyer, client_user):
        case = CaseService.create_case("Land dispute", client=client_user, employees=[lawyer])
        CaseService.create_case("Unrelated")

        assert CaseService.cases_for(lawyer) == [case]
        assert CaseService.cases_for(client_user) == [case]


class TestTaskService:
    """Tests for TaskService."""

    def test_create_notifies_assignee(self, lawyer):
        case = CaseService.create_case("Land dispute")
        due = timezone.localdate() + timedelta(days=7)

        task = TaskService.create_task("Draft pleadings", assignee=lawyer, case=case, due_date=due)

        assert task.status == TaskStatus.PENDING
        assert len(mail.outbox) == 1
        email = mail.outbox[0]
        assert email.subject == "New Task Assigned: Draft pleadings"
        assert email.to == ["advocate@example.com"]
        assert email.body.startswith("Dear Grace Achieng,")
        assert f"Due Date: {due.isoformat()}" in email.body
        assert email.body.endswith("Best regards,\nCyber Wakili")

    def test_no_due_date(self, lawyer):
        TaskService.create_task("Call client", assignee=lawyer)
        assert "Due Date: Not set" in mail.outbox[0].body

    def test_no_assignee(self, db):
        task = TaskService.create_task("Unassigned")
        assert TaskService.notify_assignee(task) is False
        assert mail.outbox == []

    def test_notify_disabled(self, lawyer):
        TaskService.create_task("Quiet", assignee=lawyer, notify=False)
        assert mail.outbox == []

    def test_invalid_priority(self, lawyer):
        with pytest.raises(VisitmanError) as exc:
            TaskService.create_task("Urgent", assignee=lawyer, priority="critical")

        assert exc.value.code == "INVALID_PRIORITY"
        assert Task.objects.count() == 0
        assert mail.outbox == []

    def test_tasks_for_and_overdue(self, lawyer):
        today = timezone.localdate()
        late = TaskService.create_task("Late", assignee=lawyer, due_date=today - timedelta(days=1), notify=False)
        done = TaskService.create_task("Done", assignee=lawyer, due_date=today - timedelta(days=2), notify=False)
        TaskService.set_status(done.pk, TaskStatus.COMPLETED)

        assert TaskService.tasks_for(lawyer) == [late]
        assert len(TaskService.tasks_for(lawyer, include_completed=True)) == 2
        assert TaskService.overdue(today=today) == [late]

    def test_set_status_errors(self, db):
        with pytest.raises(VisitmanError) as exc:
            TaskService.set_status(999, TaskStatus.COMPLETED)
        assert exc.value.code == "TASK_NOT_FOUND"
