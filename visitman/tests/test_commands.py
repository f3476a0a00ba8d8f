"""Tests for Visitman management commands."""

from datetime import timedelta
from io import StringIO
from unittest import mock

import pytest
from django.core.management import CommandError, call_command
from django.utils import timezone

from visitman.contrib.audit.models import AuditEntry
from visitman.contrib.sms.models import SMSLog
from visitman.models import GuestStatus, ReciprocalVisit, StatusReason, Visit

pytestmark = pytest.mark.django_db


def run(*args, **kwargs):
    out = StringIO()
    call_command(*args, stdout=out, **kwargs)
    return out.getvalue()


class TestCommands:
    def test_auto_signout(self, host, guest, reciprocating_member, today):
        yesterday = today - timedelta(days=1)
        signed_in = timezone.now() - timedelta(days=1)
        Visit.objects.create(guest=guest, host=host, visit_date=yesterday, sign_in_time=signed_in)
        ReciprocalVisit.objects.create(member=reciprocating_member, visit_date=yesterday, sign_in_time=signed_in)

        output = run("visitman_auto_signout")

        assert "Signed out 1 guest visit(s) and 1 reciprocal visit(s)." in output
        assert not Visit.objects.filter(sign_out_time__isnull=True).exists()

    def test_reset_limits_monthly(self, guest):
        guest.status = GuestStatus.SUSPENDED
        guest.status_reason = StatusReason.VISIT_LIMIT
        guest.save()

        output = run("visitman_reset_limits", "--period", "monthly")

        assert "Reactivated 1 guest(s)." in output
        guest.refresh_from_db()
        assert guest.status == GuestStatus.ACTIVE

    def test_reset_limits_yearly(self, reciprocating_member):
        reciprocating_member.status = GuestStatus.SUSPENDED
        reciprocating_member.status_reason = StatusReason.VISIT_LIMIT
        reciprocating_member.save()

        output = run("visitman_reset_limits", "--period=yearly")

        assert "Reactivated 0 guest(s) and 1 reciprocating member(s)." in output

    def test_reset_limits_invalid_period(self, db):
        with pytest.raises(CommandError):
            run("visitman_reset_limits", "--period", "weekly")

    def test_sms_delivery(self, db):
        with mock.patch("visitman.contrib.sms.service.SMSService.check_pending_delivery", return_value=3):
            assert "Updated 3 delivery status(es)." in run("visitman_sms_delivery", "--limit", "10")

    def test_sms_balance_not_configured(self, db):
        with pytest.raises(CommandError):
            run("visitman_sms_balance")

    def test_cleanup(self, db):
        old_log = SMSLog.objects.create(recipient_number="1", message="a", provider="x")
        SMSLog.objects.filter(pk=old_log.pk).update(created_at=timezone.now() - timedelta(days=10))
        old_entry = AuditEntry.objects.create(action_type="old")
        AuditEntry.objects.filter(pk=old_entry.pk).update(created_at=timezone.now() - timedelta(days=10))

        output = run("visitman_cleanup", "--days", "5")

        assert "Deleted 1 old SMS log(s)." in output
        assert "Deleted 1 old audit entries." in output
