"""Audit app config."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class AuditConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "visitman.contrib.audit"
    label = "visitman_audit"
    verbose_name = _("Audit trail")

    def ready(self):
        from visitman.contrib.audit import receivers  # noqa: F401
