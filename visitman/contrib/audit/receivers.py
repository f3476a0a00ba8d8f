"""Signal receivers that write the audit trail.

Connected in AuditConfig.ready().
"""

from django.contrib.auth.signals import user_logged_in, user_logged_out
from django.dispatch import receiver

from visitman.contrib.audit.models import ActionCategory
from visitman.contrib.audit.service import AuditService
from visitman.signals import (
    guest_registered,
    guest_status_changed,
    host_limit_exceeded,
    member_status_changed,
    visit_signed_in,
    visit_signed_out,
    visit_status_changed,
)


def _category(sender) -> str:
    if sender.__name__ in ("ReciprocatingMember", "ReciprocalVisit"):
        return ActionCategory.RECIPROCATION
    if sender.__name__ == "Guest":
        return ActionCategory.GUEST
    return ActionCategory.VISIT


def _client_ip(request) -> str | None:
    if request is None:
        return None
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


@receiver(user_logged_in, dispatch_uid="visitman_audit_login")
def on_user_logged_in(sender, request, user, **kwargs):
    AuditService.log_event(
        "user_login",
        ActionCategory.AUTHENTICATION,
        entity=user,
        actor=user.get_username(),
        ip_address=_client_ip(request),
    )


@receiver(user_logged_out, dispatch_uid="visitman_audit_logout")
def on_user_logged_out(sender, request, user, **kwargs):
    if user is None:
        return
    AuditService.log_event(
        "user_logout",
        ActionCategory.AUTHENTICATION,
        entity=user,
        actor=user.get_username(),
        ip_address=_client_ip(request),
    )


@receiver(guest_registered, dispatch_uid="visitman_audit_registered")
def on_guest_registered(sender, guest, visit=None, **kwargs):
    metadata = {"visit_id": visit.pk, "visit_date": visit.visit_date.isoformat()} if visit else {}
    AuditService.log_event(
        "guest_registered",
        _category(sender),
        entity=guest,
        description=f"Registered {guest.name}",
        metadata=metadata,
    )


@receiver(guest_status_changed, dispatch_uid="visitman_audit_guest_status")
def on_guest_status_changed(sender, person, old_status, new_status, **kwargs):
    AuditService.log_event(
        "status_changed",
        _category(sender),
        entity=person,
        description=f"{person.name}: {old_status} -> {new_status}",
        old_values={"status": old_status},
        new_values={"status": new_status},
        metadata={"status_reason": getattr(person, "status_reason", "")},
    )


@receiver(visit_status_changed, dispatch_uid="visitman_audit_visit_status")
def on_visit_status_changed(sender, visit, old_status, new_status, **kwargs):
    AuditService.log_event(
        "visit_status_changed",
        _category(sender),
        entity=visit,
        old_values={"status": old_status},
        new_values={"status": new_status},
        metadata={"visit_date": visit.visit_date.isoformat()},
    )


@receiver(visit_signed_in, dispatch_uid="visitman_audit_sign_in")
def on_visit_signed_in(sender, visit, **kwargs):
    AuditService.log_event(
        "visit_signed_in",
        _category(sender),
        entity=visit,
        new_values={"sign_in_time": visit.sign_in_time.isoformat()},
    )


@receiver(visit_signed_out, dispatch_uid="visitman_audit_sign_out")
def on_visit_signed_out(sender, visit, automatic=False, **kwargs):
    AuditService.log_event(
        "visit_signed_out",
        _category(sender),
        entity=visit,
        new_values={"sign_out_time": visit.sign_out_time.isoformat()},
        metadata={"automatic": automatic},
    )


@receiver(host_limit_exceeded, dispatch_uid="visitman_audit_host_limit")
def on_host_limit_exceeded(sender, host, visit_date, unapproved_count, **kwargs):
    AuditService.log_event(
        "host_limit_exceeded",
        ActionCategory.MEMBER,
        entity=host,
        metadata={"visit_date": visit_date.isoformat(), "unapproved_count": unapproved_count},
    )


@receiver(member_status_changed, dispatch_uid="visitman_audit_member_status")
def on_member_status_changed(sender, member, is_active, **kwargs):
    AuditService.log_event(
        "member_activated" if is_active else "member_deactivated",
        ActionCategory.MEMBER,
        entity=member,
        old_values={"is_active": not is_active},
        new_values={"is_active": is_active},
    )
