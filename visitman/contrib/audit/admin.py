"""Audit admin."""

from django.contrib import admin
from django.utils.html import format_html

from visitman.contrib.audit.models import AuditEntry


@admin.register(AuditEntry)
class AuditEntryAdmin(admin.ModelAdmin):
    list_display = [
        "created_at",
        "category_badge",
        "action_type",
        "entity_type",
        "entity_id",
        "actor",
    ]
    list_filter = ["action_category", "action_type", "entity_type"]
    search_fields = ["action_type", "entity_id", "description", "actor"]
    readonly_fields = [field.name for field in AuditEntry._meta.fields]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def category_badge(self, obj):
        colors = {
            "authentication": "#6f42c1",
            "guest": "#007bff",
            "visit": "#17a2b8",
            "member": "#28a745",
            "reciprocation": "#ffc107",
            "system": "#6c757d",
        }
        color = colors.get(obj.action_category, "#6c757d")
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            color,
            obj.get_action_category_display(),
        )

    category_badge.short_description = "Category"

    def has_add_permission(self, request):
        return False
