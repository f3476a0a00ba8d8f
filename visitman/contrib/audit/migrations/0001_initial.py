# Initial migration for the audit trail

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action_type", models.CharField(db_index=True, max_length=50, verbose_name="action")),
                (
                    "action_category",
                    models.CharField(
                        choices=[
                            ("authentication", "Authentication"),
                            ("guest", "Guest"),
                            ("visit", "Visit"),
                            ("member", "Member"),
                            ("reciprocation", "Reciprocation"),
                            ("system", "System"),
                        ],
                        db_index=True,
                        default="system",
                        max_length=20,
                        verbose_name="category",
                    ),
                ),
                ("entity_type", models.CharField(blank=True, max_length=50, verbose_name="entity type")),
                ("entity_id", models.CharField(blank=True, max_length=50, verbose_name="entity ID")),
                ("description", models.CharField(blank=True, max_length=255, verbose_name="description")),
                ("old_values", models.JSONField(blank=True, default=dict, verbose_name="old values")),
                ("new_values", models.JSONField(blank=True, default=dict, verbose_name="new values")),
                ("metadata", models.JSONField(blank=True, default=dict, verbose_name="metadata")),
                (
                    "actor",
                    models.CharField(
                        blank=True,
                        help_text="Username, or empty for system actions",
                        max_length=150,
                        verbose_name="actor",
                    ),
                ),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True, verbose_name="IP address")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
            ],
            options={
                "verbose_name": "audit entry",
                "verbose_name_plural": "audit entries",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["entity_type", "entity_id"], name="vm_audit_entity_idx"),
                    models.Index(fields=["action_category", "-created_at"], name="vm_audit_category_created_idx"),
                ],
            },
        ),
    ]
