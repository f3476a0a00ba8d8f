"""Case and task services."""

import logging
import smtplib
from datetime import date, timedelta

from django.core.mail import send_mail
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from visitman.conf import visitman_settings
from visitman.contrib.cases.models import Case, CaseStatus, Task, TaskPriority, TaskStatus
from visitman.exceptions import VisitmanError

logger = logging.getLogger(__name__)


class CaseService:
    """
    Service for legal cases.

    Uses @classmethod for extensibility (consistent with other contrib services).
    """

    @classmethod
    def next_number(cls, year: int | None = None) -> str:
        """Next free CASE-YYYY-NNN for the year."""
        year = year or timezone.localdate().year
        sequence = Case.objects.filter(number__startswith=f"CASE-{year}-").count() + 1
        number = f"CASE-{year}-{sequence:03d}"
        while Case.objects.filter(number=number).exists():
            sequence += 1
            number = f"CASE-{year}-{sequence:03d}"
        return number

    @classmethod
    def create_case(
        cls,
        title: str,
        client=None,
        employees=(),
        reference: str = "",
        filing_date: date | None = None,
        hearing_date: date | None = None,
        deadline: date | None = None,
        notes: str = "",
    ) -> Case:
        """
        Open a new case with the next case number.

        Args:
            title: Case title
            client: User the case is for (optional)
            employees: Users assigned to the case
        """
        for _attempt in range(3):
            try:
                with transaction.atomic():
                    case = Case.objects.create(
                        number=cls.next_number(),
                        title=title,
                        client=client,
                        reference=reference,
                        filing_date=filing_date,
                        hearing_date=hearing_date,
                        deadline=deadline,
                        notes=notes,
                    )
                    if employees:
                        case.employees.set(employees)
                break
            except IntegrityError:
                logger.warning("Case number collision, retrying")
        else:
            raise VisitmanError("DUPLICATE_CASE_NUMBER")

        logger.info("Opened case %s", case.number)
        return case

    @classmethod
    def get(cls, number: str) -> Case | None:
        try:
            return Case.objects.get(number=number)
        except Case.DoesNotExist:
            return None

    @classmethod
    def set_status(cls, case_id: int, status: str) -> Case:
        """
        Raises:
            VisitmanError: INVALID_STATUS, CASE_NOT_FOUND
        """
        if status not in CaseStatus.values:
            raise VisitmanError("INVALID_STATUS", status=status)
        try:
            case = Case.objects.get(pk=case_id)
        except Case.DoesNotExist:
            raise VisitmanError("CASE_NOT_FOUND", case_id=case_id)
        case.status = status
        case.save(update_fields=["status", "updated_at"])
        return case

    @classmethod
    def upcoming_hearings(cls, days: int = 14, today: date | None = None) -> list[Case]:
        """Open cases with a hearing in the next `days` days."""
        today = today or timezone.localdate()
        return list(
            Case.objects.exclude(status=CaseStatus.CLOSED)
            .filter(hearing_date__gte=today, hearing_date__lte=today + timedelta(days=days))
            .order_by("hearing_date")
        )

    @classmethod
    def cases_for(cls, user) -> list[Case]:
        """Cases where the user is the client or an assigned employee."""
        return list(Case.objects.filter(Q(client=user) | Q(employees=user)).distinct())


class TaskService:
    """Service for tasks."""

    @classmethod
    def create_task(
        cls,
        title: str,
        assignee=None,
        case: Case | None = None,
        due_date: date | None = None,
        priority: str = TaskPriority.MEDIUM,
        description: str = "",
        notes: str = "",
        notify: bool = True,
    ) -> Task:
        """
        Create a task and email the assignee.

        Raises:
            VisitmanError: INVALID_PRIORITY
        """
        if priority not in TaskPriority.values:
            raise VisitmanError("INVALID_PRIORITY", priority=priority)
        task = Task.objects.create(
            title=title,
            assignee=assignee,
            case=case,
            due_date=due_date,
            priority=priority,
            description=description,
            notes=notes,
        )
        logger.info("Created task %s", task.pk)
        if notify:
            cls.notify_assignee(task)
        return task

    @classmethod
    def notify_assignee(cls, task: Task) -> bool:
        """
        Send the assignment email.

        Returns:
            False when there is no assignee email or sending failed
        """
        assignee = task.assignee
        if assignee is None or not assignee.email:
            return False

        name = assignee.get_full_name() or assignee.get_username()
        subject = f"New Task Assigned: {task.title}"
        message = (
            f"Dear {name},\n\n"
            f"You have been assigned a new task: {task.title}.\n\n"
            f"Due Date: {task.due_date.isoformat() if task.due_date else 'Not set'}\n\n"
            f"Best regards,\n{visitman_settings.FIRM_NAME}"
        )
        try:
            send_mail(subject, message, None, [assignee.email])
        except (smtplib.SMTPException, OSError):
            logger.exception("Task %s: assignment email to %s failed", task.pk, assignee.email)
            return False
        return True

    @classmethod
    def set_status(cls, task_id: int, status: str) -> Task:
        """
        Raises:
            VisitmanError: INVALID_STATUS, TASK_NOT_FOUND
        """
        if status not in TaskStatus.values:
            raise VisitmanError("INVALID_STATUS", status=status)
        try:
            task = Task.objects.get(pk=task_id)
        except Task.DoesNotExist:
            raise VisitmanError("TASK_NOT_FOUND", task_id=task_id)
        task.status = status
        task.save(update_fields=["status", "updated_at"])
        return task

    @classmethod
    def tasks_for(cls, user, include_completed: bool = False) -> list[Task]:
        qs = Task.objects.filter(assignee=user).select_related("case")
        if not include_completed:
            qs = qs.exclude(status=TaskStatus.COMPLETED)
        return list(qs)

    @classmethod
    def overdue(cls, today: date | None = None) -> list[Task]:
        """Unfinished tasks whose due date has passed."""
        today = today or timezone.localdate()
        return list(
            Task.objects.filter(due_date__lt=today)
            .exclude(status=TaskStatus.COMPLETED)
            .select_related("assignee", "case")
        )
