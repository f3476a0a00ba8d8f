"""
Django Visitman - Visitor Management.

Usage:
    from visitman.services import visits, reciprocation
    from visitman.gates import Gates, GateError, GateResult

    guest, visit = visits.register_guest(
        "Jane", "Doe", "0712345678", visit_date=date.today(), host_id=member.pk
    )
    visits.sign_in(visit.pk, id_number="12345678")

    # Gates validation
    Gates.host_daily_capacity(member.pk, date.today())
    Gates.callback_authenticity(received_secret, secret)
"""


def __getattr__(name):
    if name == "VisitmanError":
        from visitman.exceptions import VisitmanError

        return VisitmanError
    if name == "Gates":
        from visitman.gates import Gates

        return Gates
    if name == "GateError":
        from visitman.gates import GateError

        return GateError
    if name == "GateResult":
        from visitman.gates import GateResult

        return GateResult
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["VisitmanError", "Gates", "GateError", "GateResult"]
__version__ = "0.1.0"
