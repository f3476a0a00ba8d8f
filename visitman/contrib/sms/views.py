"""
SMS delivery-status callback endpoint.

The gateway posts a form for every status change of a message sent with
status_url/status_secret.

Flow:
    1. Validates the shared status secret (G5)
    2. Requires id and status
    3. Calls SMSService.update_status()
    4. Returns 200 OK
"""

import logging

from django.http import HttpResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from visitman.conf import visitman_settings
from visitman.gates import GateError, Gates

from .service import SMSService

logger = logging.getLogger("visitman.sms")


@method_decorator(csrf_exempt, name="dispatch")
class SMSStatusCallbackView(View):
    """
    POST endpoint for gateway delivery reports.

    Expects form fields: id, status, and optionally reason, time,
    status_secret.

    Settings:
        VISITMAN["SMS_STATUS_SECRET"] - shared secret echoed by the gateway.
    """

    def post(self, request):
        # G5: Authenticity
        try:
            Gates.callback_authenticity(
                request.POST.get("status_secret", ""),
                visitman_settings.SMS_STATUS_SECRET,
            )
        except GateError as exc:
            logger.warning("SMS callback: G5 failed: %s", exc.message)
            return HttpResponse("Unauthorized", status=403)

        message_id = request.POST.get("id", "").strip()
        status = request.POST.get("status", "").strip()
        if not message_id or not status:
            logger.error("SMS callback: missing id or status")
            return HttpResponse("Missing id or status", status=400)

        extra = {
            key: request.POST[key]
            for key in ("reason", "time")
            if request.POST.get(key)
        }
        SMSService.update_status(message_id, status, extra=extra)
        return HttpResponse("OK")
