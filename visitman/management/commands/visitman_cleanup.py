"""Management command to cleanup old SMS logs and audit entries."""

from django.apps import apps
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Remove SMS logs and audit entries older than their cleanup window"

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Override SMS_LOG_CLEANUP_DAYS and AUDIT_CLEANUP_DAYS",
        )

    def handle(self, *args, **options):
        days = options["days"]

        if apps.is_installed("visitman.contrib.sms"):
            from visitman.contrib.sms import SMSService

            deleted = SMSService.cleanup_old_logs(days=days)
            self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} old SMS log(s)."))

        if apps.is_installed("visitman.contrib.audit"):
            from visitman.contrib.audit import AuditService

            deleted = AuditService.cleanup_old_logs(days=days)
            self.stdout.write(self.style.SUCCESS(f"Deleted {deleted} old audit entries."))
