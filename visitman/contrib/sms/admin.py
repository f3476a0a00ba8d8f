"""SMS admin."""

from django.contrib import admin
from django.utils.html import format_html

from visitman.contrib.sms.models import GatewayBalance, SMSLog


@admin.register(SMSLog)
class SMSLogAdmin(admin.ModelAdmin):
    list_display = [
        "created_at",
        "recipient_number",
        "recipient_role",
        "status_badge",
        "cost",
        "provider",
    ]
    list_filter = ["status", "provider", "recipient_role"]
    search_fields = ["recipient_number", "message_id", "message", "recipient_ref"]
    readonly_fields = ["created_at", "updated_at", "response_data"]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def status_badge(self, obj):
        colors = {
            "delivered": "#28a745",
            "sent": "#17a2b8",
            "queued": "#6c757d",
            "failed": "#dc3545",
            "undelivered": "#dc3545",
            "expired": "#ffc107",
        }
        color = colors.get(obj.status, "#6c757d")
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            color,
            obj.status,
        )

    status_badge.short_description = "Status"


@admin.register(GatewayBalance)
class GatewayBalanceAdmin(admin.ModelAdmin):
    list_display = ["provider", "balance", "converted_balance", "currency", "checked_at"]
    readonly_fields = ["checked_at"]
