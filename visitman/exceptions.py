"""Visitman exceptions."""


class VisitmanError(Exception):
    """
    Structured exception for visitor operations.

    Usage:
        try:
            visits.sign_in(visit_id)
        except VisitmanError as e:
            if e.code == "ALREADY_SIGNED_IN":
                handle_duplicate()
    """

    _default_messages = {
        "GUEST_NOT_FOUND": "Guest not found",
        "VISIT_NOT_FOUND": "Visit not found",
        "HOST_NOT_FOUND": "Host member not found",
        "MEMBER_NOT_FOUND": "Member not found",
        "CLUB_NOT_FOUND": "Reciprocating club not found",
        "CASE_NOT_FOUND": "Case not found",
        "DUPLICATE_CASE_NUMBER": "Could not allocate a case number",
        "TASK_NOT_FOUND": "Task not found",
        "ALREADY_SIGNED_IN": "Already signed in",
        "NOT_SIGNED_IN": "Must be signed in first",
        "ALREADY_SIGNED_OUT": "Already signed out",
        "GUEST_RESTRICTED": "Guest access is restricted",
        "MEMBER_INACTIVE": "Member is not active",
        "VISIT_NOT_APPROVED": "Visit is not approved",
        "VISIT_NOT_TODAY": "Visit is not scheduled for today",
        "VISIT_CANCELLED": "Visit has been cancelled",
        "ID_NUMBER_MISMATCH": "ID number does not match our records",
        "DUPLICATE_GUEST": "Guest already exists",
        "DUPLICATE_VISIT": "Visit already booked for this date",
        "DUPLICATE_MEMBER_NUMBER": "This member number already exists",
        "MEMBER_NUMBER_REQUIRED": "Member number is required",
        "MEMBER_NUMBER_MISMATCH": "Invalid member number",
        "CLUB_REQUIRED": "Reciprocating club is required",
        "INVALID_STATUS": "Invalid status",
        "INVALID_VISIT_PURPOSE": "Invalid visit purpose",
        "INVALID_GUEST_TYPE": "Invalid guest type",
        "INVALID_PRIORITY": "Invalid task priority",
        "INVALID_PHONE": "Invalid phone number",
        "SMS_NOT_CONFIGURED": "API credentials not configured",
        "INVALID_PAYLOAD": "Invalid request payload",
        "INVALID_DATE": "Invalid date",
        "MISSING_FIELD": "Required field missing",
    }

    def __init__(self, code: str, message: str | None = None, **details):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.details = details
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}
