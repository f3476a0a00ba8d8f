"""Cases app config."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class CasesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "visitman.contrib.cases"
    label = "visitman_cases"
    verbose_name = _("Cases and tasks")
