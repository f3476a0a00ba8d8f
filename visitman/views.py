"""
Front-desk JSON endpoints.

All endpoints require an authenticated staff session and accept either a
JSON body or a form post. Errors come back as:

    {"error": {"code": ..., "message": ..., "details": {...}}}

VisitmanError maps to 400 (404 for *_NOT_FOUND codes); GateError to 409.
"""

import json
import logging

from django.contrib.auth.mixins import LoginRequiredMixin
from django.http import JsonResponse
from django.utils.dateparse import parse_date
from django.views import View

from visitman.exceptions import VisitmanError
from visitman.gates import GateError
from visitman.services import reciprocation, visits

logger = logging.getLogger(__name__)


def _visit_payload(visit) -> dict:
    return {
        "id": visit.pk,
        "visit_date": visit.visit_date.isoformat(),
        "status": visit.status,
        "display_status": visits.display_status(visit),
        "sign_in_time": visit.sign_in_time.isoformat() if visit.sign_in_time else None,
        "sign_out_time": visit.sign_out_time.isoformat() if visit.sign_out_time else None,
    }


def _person_payload(person) -> dict:
    return {
        "id": person.pk,
        "name": person.name,
        "phone_number": person.phone_number,
        "status": person.status,
        "status_reason": person.status_reason,
    }


class VisitmanJSONView(LoginRequiredMixin, View):
    """Base view: parses the payload and turns domain errors into JSON."""

    raise_exception = True

    def payload(self, request) -> dict:
        if request.content_type == "application/json":
            try:
                data = json.loads(request.body or b"{}")
            except (json.JSONDecodeError, ValueError):
                raise VisitmanError("INVALID_PAYLOAD", "Invalid JSON")
            if not isinstance(data, dict):
                raise VisitmanError("INVALID_PAYLOAD", "JSON object expected")
            return data
        return request.POST.dict()

    def date(self, data: dict, key: str = "visit_date"):
        value = parse_date(str(data.get(key, "")))
        if value is None:
            raise VisitmanError("INVALID_DATE", f"{key} must be a YYYY-MM-DD date")
        return value

    def required(self, data: dict, key: str):
        value = data.get(key)
        if value in (None, ""):
            raise VisitmanError("MISSING_FIELD", f"{key} is required", field=key)
        return value

    def identifier(self, data: dict, key: str) -> int | None:
        value = data.get(key)
        if value in (None, ""):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise VisitmanError("INVALID_PAYLOAD", f"{key} must be an integer", field=key)

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except VisitmanError as exc:
            status = 404 if exc.code.endswith("_NOT_FOUND") else 400
            logger.warning("%s rejected: %s", request.path, exc)
            return JsonResponse({"error": exc.as_dict()}, status=status)
        except GateError as exc:
            logger.warning("%s rejected by %s: %s", request.path, exc.gate_name, exc.message)
            return JsonResponse(
                {
                    "error": {
                        "code": exc.gate_name,
                        "message": exc.message,
                        "details": exc.details,
                    }
                },
                status=409,
            )


class RegisterGuestView(VisitmanJSONView):
    def post(self, request):
        data = self.payload(request)
        guest, visit = visits.register_guest(
            first_name=self.required(data, "first_name"),
            last_name=self.required(data, "last_name"),
            phone_number=self.required(data, "phone_number"),
            visit_date=self.date(data),
            host_id=self.identifier(data, "host_id"),
            id_number=data.get("id_number", ""),
            email=data.get("email", ""),
            courtesy=data.get("courtesy", ""),
            guest_type=data.get("guest_type") or "guest",
            receive_emails=bool(data.get("receive_emails")),
            receive_messages=bool(data.get("receive_messages")),
        )
        return JsonResponse(
            {"guest": _person_payload(guest), "visit": _visit_payload(visit)},
            status=201,
        )


class SignInView(VisitmanJSONView):
    def post(self, request, visit_id):
        data = self.payload(request)
        visit = visits.sign_in(visit_id, id_number=data.get("id_number") or None)
        return JsonResponse({"visit": _visit_payload(visit)})


class SignOutView(VisitmanJSONView):
    def post(self, request, visit_id):
        visit = visits.sign_out(visit_id)
        return JsonResponse({"visit": _visit_payload(visit)})


class CancelVisitView(VisitmanJSONView):
    def post(self, request, visit_id):
        visit = visits.cancel_visit(visit_id)
        return JsonResponse({"visit": _visit_payload(visit)})


class GuestStatusView(VisitmanJSONView):
    def post(self, request, guest_id):
        data = self.payload(request)
        guest = visits.set_guest_status(guest_id, self.required(data, "status"))
        return JsonResponse({"guest": _person_payload(guest)})


class ReciprocalSignInView(VisitmanJSONView):
    def post(self, request, member_id):
        data = self.payload(request)
        visit = reciprocation.sign_in(
            member_id,
            member_number=str(data.get("member_number", "")).strip(),
            purpose=data.get("purpose", ""),
            club_id=self.identifier(data, "club_id"),
        )
        payload = _visit_payload(visit)
        payload["purpose"] = visit.purpose
        payload["final_casual_visit"] = reciprocation.is_final_casual_visit(visit)
        return JsonResponse({"visit": payload})


class ReciprocalSignOutView(VisitmanJSONView):
    def post(self, request, visit_id):
        visit = reciprocation.sign_out(visit_id)
        return JsonResponse({"visit": _visit_payload(visit)})
