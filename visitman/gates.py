"""
Visitman Gates - Validation rules.

G1: GuestStanding - Guest (or reciprocating member) is not banned or suspended
G2: HostDailyCapacity - Host has a free guest slot on the visit date
G3: GuestAllowance - Guest is within the monthly and yearly visit allowance
G4: SignInEligibility - Visit is approved, for today, and not yet signed in
G5: CallbackAuthenticity - Gateway status callback carries the shared secret
G6: MemberIdentity - Reciprocating member number matches the recorded one
"""

import hmac
import logging
from dataclasses import dataclass
from datetime import date

logger = logging.getLogger(__name__)


class GateError(Exception):
    """Gate validation error."""

    def __init__(self, gate_name: str, message: str, details: dict | None = None):
        self.gate_name = gate_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{gate_name}] {message}")


@dataclass
class GateResult:
    """Result of a gate check."""

    passed: bool
    gate_name: str
    message: str = ""


# =============================================================================
# Gates
# =============================================================================


class Gates:
    """Visitman validation gates."""

    # =========================================================================
    # G1: Guest Standing
    # =========================================================================

    @classmethod
    def guest_standing(cls, person) -> GateResult:
        """
        G1: Guest or reciprocating member must not be restricted.

        A suspension for the visit limit does not block visits that were
        already approved; only bans and suspensions by staff do.

        Args:
            person: Guest or ReciprocatingMember

        Raises:
            GateError: If the person is banned or suspended by staff
        """
        if person.is_restricted:
            raise GateError(
                "G1_GuestStanding",
                f"Access is restricted due to status: {person.status}",
                {"status": person.status},
            )
        return GateResult(True, "G1_GuestStanding")

    @classmethod
    def check_guest_standing(cls, person) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.guest_standing(person)
            return True
        except GateError:
            return False

    # =========================================================================
    # G2: Host Daily Capacity
    # =========================================================================

    @classmethod
    def host_daily_capacity(
        cls,
        host_id: int,
        visit_date: date,
        exclude_visit_id: int | None = None,
    ) -> GateResult:
        """
        G2: Host must have a free guest slot on visit_date.

        Args:
            host_id: Member ID of the host
            visit_date: Date of the visit
            exclude_visit_id: Visit to leave out of the count (re-evaluation)

        Raises:
            GateError: If the host already has DAILY_HOST_LIMIT bookings
        """
        from visitman.conf import visitman_settings
        from visitman.services.visits import daily_visits_to_host

        limit = visitman_settings.DAILY_HOST_LIMIT
        count = daily_visits_to_host(host_id, visit_date, exclude_visit_id=exclude_visit_id)
        if count >= limit:
            raise GateError(
                "G2_HostDailyCapacity",
                f"Host has reached the daily guest limit ({limit}).",
                {"count": count, "limit": limit},
            )
        return GateResult(True, "G2_HostDailyCapacity")

    @classmethod
    def check_host_daily_capacity(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.host_daily_capacity(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G3: Guest Allowance
    # =========================================================================

    @classmethod
    def guest_allowance(
        cls,
        guest_id: int,
        visit_date: date,
        exclude_visit_id: int | None = None,
    ) -> GateResult:
        """
        G3: Guest must be within the monthly and yearly visit allowance.

        Args:
            guest_id: Guest ID
            visit_date: Date of the visit (selects the month and year)
            exclude_visit_id: Visit to leave out of the count (re-evaluation)

        Raises:
            GateError: If either allowance is used up
        """
        from visitman.conf import visitman_settings
        from visitman.services.visits import monthly_visits, yearly_visits

        monthly = monthly_visits(guest_id, visit_date, exclude_visit_id=exclude_visit_id)
        yearly = yearly_visits(guest_id, visit_date, exclude_visit_id=exclude_visit_id)
        monthly_limit = visitman_settings.MONTHLY_GUEST_LIMIT
        yearly_limit = visitman_settings.YEARLY_GUEST_LIMIT

        if monthly >= monthly_limit or yearly >= yearly_limit:
            raise GateError(
                "G3_GuestAllowance",
                "Guest has used up the visit allowance.",
                {
                    "monthly": monthly,
                    "monthly_limit": monthly_limit,
                    "yearly": yearly,
                    "yearly_limit": yearly_limit,
                },
            )
        return GateResult(True, "G3_GuestAllowance")

    @classmethod
    def check_guest_allowance(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.guest_allowance(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G4: Sign-in Eligibility
    # =========================================================================

    @classmethod
    def sign_in_eligibility(cls, visit, today: date) -> GateResult:
        """
        G4: Visit can be signed in today.

        Works for both Visit and ReciprocalVisit.

        Raises:
            GateError: If cancelled, not approved, not for today, or already signed in
        """
        if visit.status == "cancelled":
            raise GateError("G4_SignInEligibility", "Visit has been cancelled.")

        if visit.status != "approved":
            raise GateError(
                "G4_SignInEligibility",
                f"Visit is not approved (status: {visit.status}).",
                {"status": visit.status},
            )

        if visit.visit_date != today:
            raise GateError(
                "G4_SignInEligibility",
                "Visit is not scheduled for today.",
                {"visit_date": visit.visit_date.isoformat()},
            )

        if visit.sign_in_time is not None:
            raise GateError(
                "G4_SignInEligibility",
                "Already signed in.",
                {"sign_in_time": visit.sign_in_time.isoformat()},
            )

        return GateResult(True, "G4_SignInEligibility")

    @classmethod
    def check_sign_in_eligibility(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.sign_in_eligibility(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G5: Callback Authenticity (shared status secret)
    # =========================================================================

    @classmethod
    def callback_authenticity(cls, received_secret: str, secret: str) -> GateResult:
        """
        G5: Delivery-status callback carries the configured status secret.

        The secret is sent to the gateway with every message (status_secret)
        and echoed back on each callback.

        Args:
            received_secret: Secret found in the callback body
            secret: Configured SMS_STATUS_SECRET

        Raises:
            GateError: If a secret is configured and does not match
        """
        if not secret:
            logger.warning(
                "G5_CallbackAuthenticity: status secret is empty, "
                "callbacks are accepted without authentication."
            )
            return GateResult(True, "G5_CallbackAuthenticity", "No secret configured (skipped)")

        if not received_secret:
            raise GateError("G5_CallbackAuthenticity", "Missing status secret.")

        if not hmac.compare_digest(received_secret.encode(), secret.encode()):
            raise GateError("G5_CallbackAuthenticity", "Invalid status secret.")

        return GateResult(True, "G5_CallbackAuthenticity")

    @classmethod
    def check_callback_authenticity(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.callback_authenticity(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G6: Member Identity
    # =========================================================================

    @classmethod
    def member_identity(cls, member, member_number: str) -> GateResult:
        """
        G6: Supplied member number matches the one on record.

        A member without a recorded number passes; the caller records it.

        Raises:
            GateError: If the numbers differ
        """
        if member.member_number and member.member_number != member_number:
            raise GateError(
                "G6_MemberIdentity",
                "Invalid member number.",
                {"member_id": member.pk},
            )
        return GateResult(True, "G6_MemberIdentity")

    @classmethod
    def check_member_identity(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.member_identity(*args, **kwargs)
            return True
        except GateError:
            return False
