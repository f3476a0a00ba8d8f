"""
Visitman Cases - case and task tracking for a legal practice.

Usage:
    INSTALLED_APPS = [
        ...
        "visitman",
        "visitman.contrib.cases",
    ]

    from visitman.contrib.cases import CaseService, TaskService

    case = CaseService.create_case("Estate of J. Doe", client=client_user)
    TaskService.create_task("Draft affidavit", assignee=advocate, case=case)
"""


def __getattr__(name):
    if name == "CaseService":
        from visitman.contrib.cases.service import CaseService

        return CaseService
    if name == "TaskService":
        from visitman.contrib.cases.service import TaskService

        return TaskService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["CaseService", "TaskService"]
