"""Signal receivers that turn visitor events into SMS notifications.

Connected in SMSConfig.ready().
"""

import logging

from django.dispatch import receiver

from visitman.contrib.sms import notifications
from visitman.signals import (
    guest_status_changed,
    host_limit_exceeded,
    visit_signed_in,
    visit_signed_out,
    visit_status_changed,
)

logger = logging.getLogger("visitman.sms")


@receiver(guest_status_changed, dispatch_uid="visitman_sms_guest_status")
def on_guest_status_changed(sender, person, old_status, new_status, **kwargs):
    message = notifications.guest_status_message(person.first_name, old_status, new_status)
    notifications.notify(person, message)


@receiver(visit_status_changed, dispatch_uid="visitman_sms_visit_status")
def on_visit_status_changed(sender, visit, old_status, new_status, **kwargs):
    person = notifications.visitor_of(visit)
    message = notifications.visit_status_message(
        person.first_name, visit.visit_date, old_status, new_status
    )
    notifications.notify(person, message)


@receiver(host_limit_exceeded, dispatch_uid="visitman_sms_host_limit")
def on_host_limit_exceeded(sender, host, visit_date, unapproved_count, **kwargs):
    message = notifications.host_limit_message(host.first_name or "Host", visit_date, unapproved_count)
    notifications.notify(host, message)


@receiver(visit_signed_in, dispatch_uid="visitman_sms_sign_in")
def on_visit_signed_in(sender, visit, **kwargs):
    if sender.__name__ == "ReciprocalVisit":
        from visitman.services.reciprocation import is_final_casual_visit

        message = notifications.reciprocal_sign_in_message(
            visit.member.first_name,
            visit.sign_in_time,
            is_final=is_final_casual_visit(visit),
        )
        notifications.notify(visit.member, message)
        return

    message = notifications.sign_in_message(visit.guest.first_name, visit.sign_in_time)
    notifications.notify(visit.guest, message)


@receiver(visit_signed_out, dispatch_uid="visitman_sms_sign_out")
def on_visit_signed_out(sender, visit, automatic=False, **kwargs):
    if automatic:
        return
    person = notifications.visitor_of(visit)
    notifications.notify(person, notifications.sign_out_message(person.first_name, visit.sign_out_time))
