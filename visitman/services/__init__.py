"""Visitman services (CORE only).

CORE services are exported here. Contrib services are in their respective modules:
- visitman.contrib.sms: SMSService
- visitman.contrib.audit: AuditService
- visitman.contrib.cases: CaseService, TaskService
"""

from visitman.services import guests
from visitman.services import members
from visitman.services import visits
from visitman.services import reciprocation
from visitman.services import reports

__all__ = ["guests", "members", "visits", "reciprocation", "reports"]
