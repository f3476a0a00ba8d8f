"""Management command to close visits left open at the end of the day."""

from django.core.management.base import BaseCommand
from django.utils.dateparse import parse_date

from visitman.services import reciprocation, visits


class Command(BaseCommand):
    help = "Sign out guests and reciprocating members still signed in at day end"

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            type=parse_date,
            default=None,
            help="Treat this date (YYYY-MM-DD) as today",
        )

    def handle(self, *args, **options):
        today = options["date"]
        guests = visits.auto_sign_out(today=today)
        members = reciprocation.auto_sign_out(today=today)
        self.stdout.write(
            self.style.SUCCESS(
                f"Signed out {guests} guest visit(s) and {members} reciprocal visit(s)."
            )
        )
