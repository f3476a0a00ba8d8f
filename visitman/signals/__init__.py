"""
Visitman signals - public event API.

Emitted signals:
- guest_registered: Emitted by services.visits.register_guest()
- guest_status_changed: Guest or ReciprocatingMember standing changed
- visit_status_changed: Visit or ReciprocalVisit decision changed
- host_limit_exceeded: Host has more bookings than the daily allowance
- visit_signed_in / visit_signed_out: Attendance recorded
- member_status_changed: Hosting Member activated or deactivated
"""

from django.dispatch import Signal

# Guest signals (sender=Guest or ReciprocatingMember)
guest_registered = Signal()  # guest=Guest, visit=Visit
guest_status_changed = Signal()  # person, old_status, new_status

# Visit signals (sender=Visit or ReciprocalVisit)
visit_status_changed = Signal()  # visit, old_status, new_status
visit_signed_in = Signal()  # visit
visit_signed_out = Signal()  # visit, automatic=bool

# Host signals (sender=Member)
host_limit_exceeded = Signal()  # host, visit_date, unapproved_count
member_status_changed = Signal()  # member, is_active
