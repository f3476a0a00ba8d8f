"""Visitman admin (CORE only).

Contrib models have their own admin in their respective modules:
- visitman.contrib.sms.admin: SMSLogAdmin, GatewayBalanceAdmin
- visitman.contrib.audit.admin: AuditEntryAdmin
- visitman.contrib.cases.admin: CaseAdmin, TaskAdmin

Status changes made from the admin go through the services so visits are
re-decided and notifications are sent.
"""

from django.contrib import admin, messages
from django.utils.html import format_html

from visitman.models import (
    Guest,
    GuestStatus,
    Member,
    ReciprocalVisit,
    ReciprocatingClub,
    ReciprocatingMember,
    Visit,
)
from visitman.services import reciprocation, visits
from visitman.utils import format_duration

STATUS_COLORS = {
    "active": "#28a745",
    "approved": "#28a745",
    "unapproved": "#ffc107",
    "suspended": "#fd7e14",
    "banned": "#dc3545",
    "cancelled": "#6c757d",
}


def status_badge(value: str, label: str):
    return format_html(
        '<span style="background:{}; color:#fff; padding:2px 8px; '
        'border-radius:3px; font-size:11px;">{}</span>',
        STATUS_COLORS.get(value, "#6c757d"),
        label,
    )


# ===========================================
# Member Admin
# ===========================================


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = [
        "member_number",
        "name",
        "phone_number",
        "receive_messages",
        "is_active",
    ]
    list_filter = ["is_active", "receive_messages"]
    search_fields = ["member_number", "first_name", "last_name", "phone_number", "email"]
    raw_id_fields = ["user"]
    readonly_fields = ["created_at", "updated_at"]


# ===========================================
# Guest Admin
# ===========================================


class VisitInline(admin.TabularInline):
    model = Visit
    fk_name = "guest"
    extra = 0
    fields = ["visit_date", "host", "courtesy", "status", "sign_in_time", "sign_out_time"]
    readonly_fields = ["status", "sign_in_time", "sign_out_time"]
    raw_id_fields = ["host"]
    ordering = ["-visit_date"]
    max_num = 20


def _set_guest_status(modeladmin, request, queryset, status):
    for guest in queryset:
        visits.set_guest_status(guest.pk, status)
    modeladmin.message_user(request, f"{queryset.count()} guest(s) set to {status}.", messages.SUCCESS)


@admin.action(description="Activate selected guests")
def activate_guests(modeladmin, request, queryset):
    _set_guest_status(modeladmin, request, queryset, GuestStatus.ACTIVE)


@admin.action(description="Suspend selected guests")
def suspend_guests(modeladmin, request, queryset):
    _set_guest_status(modeladmin, request, queryset, GuestStatus.SUSPENDED)


@admin.action(description="Ban selected guests")
def ban_guests(modeladmin, request, queryset):
    _set_guest_status(modeladmin, request, queryset, GuestStatus.BANNED)


@admin.register(Guest)
class GuestAdmin(admin.ModelAdmin):
    list_display = [
        "name",
        "guest_type",
        "phone_number",
        "id_number",
        "status_display",
        "status_reason",
    ]
    list_filter = ["guest_type", "status", "status_reason", "receive_messages"]
    search_fields = ["first_name", "last_name", "phone_number", "id_number", "email"]
    readonly_fields = ["status", "status_reason", "created_at", "updated_at"]
    actions = [activate_guests, suspend_guests, ban_guests]
    inlines = [VisitInline]

    fieldsets = [
        (
            "Identification",
            {"fields": ["guest_type", "first_name", "last_name", "id_number"]},
        ),
        ("Contact", {"fields": ["phone_number", "email", "receive_messages", "receive_emails"]}),
        ("Standing", {"fields": ["status", "status_reason"]}),
        ("Timestamps", {"fields": ["created_at", "updated_at"], "classes": ["collapse"]}),
    ]

    def status_display(self, obj):
        return status_badge(obj.status, obj.get_status_display())

    status_display.short_description = "Status"


# ===========================================
# Visit Admin
# ===========================================


@admin.action(description="Cancel selected visits")
def cancel_visits(modeladmin, request, queryset):
    for visit in queryset:
        visits.cancel_visit(visit.pk)
    modeladmin.message_user(request, f"{queryset.count()} visit(s) cancelled.", messages.SUCCESS)


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = [
        "visit_date",
        "guest",
        "host",
        "status_display",
        "sign_in_time",
        "sign_out_time",
        "duration",
    ]
    list_filter = ["status", "visit_date", "guest__guest_type"]
    search_fields = [
        "guest__first_name",
        "guest__last_name",
        "guest__phone_number",
        "host__member_number",
        "host__first_name",
    ]
    raw_id_fields = ["guest", "host"]
    readonly_fields = ["status", "sign_in_time", "sign_out_time", "created_at", "updated_at"]
    date_hierarchy = "visit_date"
    actions = [cancel_visits]

    def status_display(self, obj):
        return status_badge(obj.status, visits.display_status(obj))

    status_display.short_description = "Status"

    def duration(self, obj):
        return format_duration(obj.sign_in_time, obj.sign_out_time)


# ===========================================
# Reciprocation Admin
# ===========================================


@admin.register(ReciprocatingClub)
class ReciprocatingClubAdmin(admin.ModelAdmin):
    list_display = ["name", "email", "phone", "status", "member_count"]
    list_filter = ["status"]
    search_fields = ["name", "email"]

    def member_count(self, obj):
        return obj.members.count()

    member_count.short_description = "Members"


class ReciprocalVisitInline(admin.TabularInline):
    model = ReciprocalVisit
    extra = 0
    fields = ["visit_date", "purpose", "status", "sign_in_time", "sign_out_time"]
    readonly_fields = ["status", "sign_in_time", "sign_out_time"]
    ordering = ["-visit_date"]
    max_num = 20


@admin.action(description="Activate selected members")
def activate_members(modeladmin, request, queryset):
    for member in queryset:
        reciprocation.set_member_status(member.pk, GuestStatus.ACTIVE)


@admin.action(description="Suspend selected members")
def suspend_members(modeladmin, request, queryset):
    for member in queryset:
        reciprocation.set_member_status(member.pk, GuestStatus.SUSPENDED)


@admin.register(ReciprocatingMember)
class ReciprocatingMemberAdmin(admin.ModelAdmin):
    list_display = ["name", "member_number", "club", "phone_number", "status_display"]
    list_filter = ["status", "club"]
    search_fields = ["first_name", "last_name", "member_number", "id_number", "phone_number"]
    raw_id_fields = ["club"]
    readonly_fields = ["status", "status_reason", "created_at", "updated_at"]
    actions = [activate_members, suspend_members]
    inlines = [ReciprocalVisitInline]

    def status_display(self, obj):
        return status_badge(obj.status, obj.get_status_display())

    status_display.short_description = "Status"


@admin.register(ReciprocalVisit)
class ReciprocalVisitAdmin(admin.ModelAdmin):
    list_display = ["visit_date", "member", "purpose", "status", "sign_in_time", "sign_out_time"]
    list_filter = ["status", "purpose", "visit_date"]
    search_fields = ["member__first_name", "member__last_name", "member__member_number"]
    raw_id_fields = ["member"]
    readonly_fields = ["status", "sign_in_time", "sign_out_time", "created_at", "updated_at"]
    date_hierarchy = "visit_date"
