"""SMS app config."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class SMSConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "visitman.contrib.sms"
    label = "visitman_sms"
    verbose_name = _("SMS notifications")

    def ready(self):
        from visitman.contrib.sms import receivers  # noqa: F401
