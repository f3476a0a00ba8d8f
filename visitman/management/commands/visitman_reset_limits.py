"""Management command to release visit-limit suspensions at period start."""

from django.core.management.base import BaseCommand
from django.utils.dateparse import parse_date

from visitman.services import reciprocation, visits


class Command(BaseCommand):
    help = "Reactivate guests suspended for the visit limit once their allowance has room"

    def add_arguments(self, parser):
        parser.add_argument(
            "--period",
            choices=["monthly", "yearly"],
            default="monthly",
            help="Run on the 1st of each month (monthly) or on January 1st (yearly)",
        )
        parser.add_argument(
            "--date",
            type=parse_date,
            default=None,
            help="Treat this date (YYYY-MM-DD) as today",
        )

    def handle(self, *args, **options):
        today = options["date"]
        if options["period"] == "yearly":
            released = visits.reset_yearly_limits(today=today)
            members = reciprocation.reset_yearly_limits(today=today)
            self.stdout.write(
                self.style.SUCCESS(
                    f"Reactivated {released} guest(s) and {members} reciprocating member(s)."
                )
            )
            return

        released = visits.reset_monthly_limits(today=today)
        self.stdout.write(self.style.SUCCESS(f"Reactivated {released} guest(s)."))
