# Initial migration for the SMS log and gateway balance

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SMSLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("recipient_number", models.CharField(db_index=True, max_length=20, verbose_name="recipient number")),
                (
                    "recipient_role",
                    models.CharField(
                        blank=True,
                        help_text="guest, member, reciprocating_member, employee, test",
                        max_length=30,
                        verbose_name="recipient role",
                    ),
                ),
                (
                    "recipient_ref",
                    models.CharField(
                        blank=True,
                        help_text="Local reference, e.g. guest:12",
                        max_length=100,
                        verbose_name="recipient reference",
                    ),
                ),
                ("message", models.TextField(verbose_name="message")),
                ("provider", models.CharField(max_length=20, verbose_name="provider")),
                ("message_id", models.CharField(blank=True, db_index=True, max_length=100, verbose_name="message ID")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("unknown", "Unknown"),
                            ("sent", "Sent"),
                            ("queued", "Queued"),
                            ("delivered", "Delivered"),
                            ("failed", "Failed"),
                            ("expired", "Expired"),
                            ("undelivered", "Undelivered"),
                        ],
                        db_index=True,
                        default="unknown",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("cost", models.DecimalField(decimal_places=4, default=0, max_digits=10, verbose_name="cost")),
                ("response_data", models.JSONField(blank=True, default=dict, verbose_name="response data")),
                ("error_message", models.TextField(blank=True, verbose_name="error")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "SMS log",
                "verbose_name_plural": "SMS logs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="vm_smslog_status_created_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="GatewayBalance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("provider", models.CharField(max_length=20, unique=True, verbose_name="provider")),
                ("balance", models.DecimalField(decimal_places=2, default=0, max_digits=12, verbose_name="balance")),
                (
                    "converted_balance",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=12, null=True, verbose_name="converted balance"
                    ),
                ),
                ("currency", models.CharField(blank=True, max_length=10, verbose_name="currency")),
                ("checked_at", models.DateTimeField(auto_now=True, verbose_name="checked at")),
            ],
            options={
                "verbose_name": "gateway balance",
                "verbose_name_plural": "gateway balances",
            },
        ),
    ]
