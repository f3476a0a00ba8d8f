"""Visitman models (CORE only).

CORE models are exported here. Contrib models are in their respective modules:
- visitman.contrib.sms: SMSLog, GatewayBalance
- visitman.contrib.audit: AuditEntry
- visitman.contrib.cases: Case, Task
"""

from visitman.models.member import Member
from visitman.models.guest import Guest, GuestStatus, GuestType, StatusReason
from visitman.models.visit import Visit, VisitStatus
from visitman.models.reciprocal import (
    ClubStatus,
    ReciprocalVisit,
    ReciprocatingClub,
    ReciprocatingMember,
    VisitPurpose,
)

__all__ = [
    # Hosts
    "Member",
    # Guests and visits
    "Guest",
    "GuestStatus",
    "GuestType",
    "StatusReason",
    "Visit",
    "VisitStatus",
    # Reciprocation
    "ReciprocatingClub",
    "ReciprocatingMember",
    "ReciprocalVisit",
    "ClubStatus",
    "VisitPurpose",
]
