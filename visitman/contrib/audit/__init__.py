"""
Visitman Audit - trail of guest, visit and member actions.

Records registrations, status changes, sign-ins and sign-outs as they are
signalled by the services, plus staff logins.

Usage:
    INSTALLED_APPS = [
        ...
        "visitman",
        "visitman.contrib.audit",
    ]

    from visitman.contrib.audit import AuditService

    entries, total = AuditService.get_logs(action_category="guest")
"""


def __getattr__(name):
    if name == "AuditService":
        from visitman.contrib.audit.service import AuditService

        return AuditService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["AuditService"]
