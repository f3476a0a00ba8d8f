# Initial migration for members, guests, visits and reciprocation

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

GUEST_STATUS = [("active", "Active"), ("suspended", "Suspended"), ("banned", "Banned")]
STATUS_REASON = [("manual", "Set by staff"), ("visit_limit", "Visit limit reached")]
VISIT_STATUS = [
    ("approved", "Approved"),
    ("unapproved", "Unapproved"),
    ("cancelled", "Cancelled"),
    ("suspended", "Suspended"),
    ("banned", "Banned"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Member",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("member_number", models.CharField(max_length=50, unique=True, verbose_name="member number")),
                ("first_name", models.CharField(max_length=100, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=100, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email")),
                ("phone_number", models.CharField(blank=True, db_index=True, max_length=20, verbose_name="phone number")),
                ("receive_messages", models.BooleanField(default=False, verbose_name="receive SMS")),
                ("receive_emails", models.BooleanField(default=False, verbose_name="receive emails")),
                ("is_active", models.BooleanField(db_index=True, default=True, verbose_name="active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="visitman_member",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="user account",
                    ),
                ),
            ],
            options={
                "verbose_name": "member",
                "verbose_name_plural": "members",
                "ordering": ["first_name", "last_name"],
            },
        ),
        migrations.CreateModel(
            name="Guest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "guest_type",
                    models.CharField(
                        choices=[
                            ("guest", "Guest"),
                            ("accommodation", "Accommodation guest"),
                            ("supplier", "Supplier"),
                        ],
                        db_index=True,
                        default="guest",
                        max_length=20,
                        verbose_name="type",
                    ),
                ),
                ("first_name", models.CharField(max_length=255, verbose_name="first name")),
                ("last_name", models.CharField(max_length=255, verbose_name="last name")),
                ("email", models.EmailField(blank=True, db_index=True, max_length=254, verbose_name="email")),
                ("phone_number", models.CharField(max_length=20, verbose_name="phone number")),
                (
                    "id_number",
                    models.CharField(
                        blank=True,
                        help_text="National ID or passport number",
                        max_length=100,
                        null=True,
                        verbose_name="ID number",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=GUEST_STATUS, db_index=True, default="active", max_length=20, verbose_name="status"
                    ),
                ),
                (
                    "status_reason",
                    models.CharField(
                        choices=STATUS_REASON, default="manual", max_length=20, verbose_name="status reason"
                    ),
                ),
                ("receive_emails", models.BooleanField(default=False, verbose_name="receive emails")),
                ("receive_messages", models.BooleanField(default=False, verbose_name="receive SMS")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "guest",
                "verbose_name_plural": "guests",
                "ordering": ["first_name", "last_name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("guest_type", "phone_number"), name="visitman_unique_guest_phone"
                    ),
                    models.UniqueConstraint(
                        fields=("guest_type", "id_number"), name="visitman_unique_guest_id_number"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReciprocatingClub",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(db_index=True, max_length=255, verbose_name="club name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email")),
                ("phone", models.CharField(blank=True, max_length=20, verbose_name="phone")),
                ("website", models.URLField(blank=True, verbose_name="website")),
                (
                    "status",
                    models.CharField(
                        choices=GUEST_STATUS, db_index=True, default="active", max_length=20, verbose_name="status"
                    ),
                ),
                ("notes", models.TextField(blank=True, verbose_name="notes")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "reciprocating club",
                "verbose_name_plural": "reciprocating clubs",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ReciprocatingMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("first_name", models.CharField(max_length=255, verbose_name="first name")),
                ("last_name", models.CharField(max_length=255, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email")),
                ("phone_number", models.CharField(blank=True, max_length=20, verbose_name="phone number")),
                ("id_number", models.CharField(db_index=True, max_length=100, verbose_name="ID number")),
                (
                    "member_number",
                    models.CharField(
                        blank=True,
                        max_length=100,
                        null=True,
                        unique=True,
                        verbose_name="reciprocating member number",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=GUEST_STATUS, db_index=True, default="active", max_length=20, verbose_name="status"
                    ),
                ),
                (
                    "status_reason",
                    models.CharField(
                        choices=STATUS_REASON, default="manual", max_length=20, verbose_name="status reason"
                    ),
                ),
                ("receive_emails", models.BooleanField(default=False, verbose_name="receive emails")),
                ("receive_messages", models.BooleanField(default=False, verbose_name="receive SMS")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "club",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="visitman.reciprocatingclub",
                        verbose_name="club",
                    ),
                ),
            ],
            options={
                "verbose_name": "reciprocating member",
                "verbose_name_plural": "reciprocating members",
                "ordering": ["first_name", "last_name"],
            },
        ),
        migrations.CreateModel(
            name="Visit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("courtesy", models.CharField(blank=True, max_length=255, verbose_name="courtesy")),
                ("visit_date", models.DateField(db_index=True, verbose_name="visit date")),
                (
                    "status",
                    models.CharField(
                        choices=VISIT_STATUS, db_index=True, default="approved", max_length=20, verbose_name="status"
                    ),
                ),
                ("sign_in_time", models.DateTimeField(blank=True, null=True, verbose_name="signed in at")),
                ("sign_out_time", models.DateTimeField(blank=True, null=True, verbose_name="signed out at")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "guest",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="visits",
                        to="visitman.guest",
                        verbose_name="guest",
                    ),
                ),
                (
                    "host",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="hosted_visits",
                        to="visitman.member",
                        verbose_name="host",
                    ),
                ),
            ],
            options={
                "verbose_name": "visit",
                "verbose_name_plural": "visits",
                "ordering": ["-visit_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["host", "visit_date"], name="vm_visit_host_date_idx"),
                    models.Index(fields=["guest", "visit_date"], name="vm_visit_guest_date_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("guest", "host", "visit_date"), name="visitman_unique_guest_visit_date"
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReciprocalVisit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("visit_date", models.DateField(db_index=True, verbose_name="visit date")),
                (
                    "purpose",
                    models.CharField(
                        blank=True,
                        choices=[("golf_tournament", "Golf tournament"), ("casual_visit", "Casual visit")],
                        max_length=20,
                        verbose_name="purpose",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=VISIT_STATUS, db_index=True, default="approved", max_length=20, verbose_name="status"
                    ),
                ),
                ("sign_in_time", models.DateTimeField(blank=True, null=True, verbose_name="signed in at")),
                ("sign_out_time", models.DateTimeField(blank=True, null=True, verbose_name="signed out at")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="visits",
                        to="visitman.reciprocatingmember",
                        verbose_name="member",
                    ),
                ),
            ],
            options={
                "verbose_name": "reciprocal visit",
                "verbose_name_plural": "reciprocal visits",
                "ordering": ["-visit_date"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("member", "visit_date"), name="visitman_unique_member_visit_date"
                    ),
                ],
            },
        ),
    ]
