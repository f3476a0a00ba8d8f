"""Management command to poll delivery reports for pending SMS."""

from django.core.management.base import BaseCommand

from visitman.contrib.sms import SMSService


class Command(BaseCommand):
    help = "Fetch delivery reports for messages sent in the last 24 hours"

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=50,
            help="Maximum number of messages to check",
        )

    def handle(self, *args, **options):
        updated = SMSService.check_pending_delivery(limit=options["limit"])
        self.stdout.write(self.style.SUCCESS(f"Updated {updated} delivery status(es)."))
