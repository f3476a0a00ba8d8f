"""Management command to refresh the SMS account balance."""

from django.core.management.base import BaseCommand, CommandError

from visitman.contrib.sms import SMSService


class Command(BaseCommand):
    help = "Fetch and store the SMS gateway account balance"

    def handle(self, *args, **options):
        balance = SMSService.fetch_balance()
        if balance is None:
            raise CommandError("Could not fetch the SMS balance (see logs).")
        self.stdout.write(
            self.style.SUCCESS(f"{balance.provider} balance: {balance.balance} {balance.currency}")
        )
        quota = SMSService.quota_status()
        if quota["status"] != "good":
            self.stdout.write(self.style.WARNING(f"SMS balance is {quota['status']}."))
