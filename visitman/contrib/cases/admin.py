"""Cases admin."""

from django.contrib import admin

from visitman.contrib.cases.models import Case, Task
from visitman.contrib.cases.service import CaseService, TaskService


class TaskInline(admin.TabularInline):
    model = Task
    extra = 0
    fields = ["title", "assignee", "due_date", "priority", "status"]
    raw_id_fields = ["assignee"]


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    list_display = ["number", "title", "client", "status", "hearing_date", "deadline"]
    list_filter = ["status"]
    search_fields = ["number", "title", "reference", "client__username"]
    raw_id_fields = ["client"]
    filter_horizontal = ["employees"]
    readonly_fields = ["number", "created_at", "updated_at"]
    inlines = [TaskInline]

    def save_model(self, request, obj, form, change):
        if not obj.number:
            obj.number = CaseService.next_number()
        super().save_model(request, obj, form, change)


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ["title", "case", "assignee", "due_date", "priority", "status"]
    list_filter = ["status", "priority"]
    search_fields = ["title", "case__number", "assignee__username"]
    raw_id_fields = ["case", "assignee"]
    date_hierarchy = "due_date"

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        if not change or "assignee" in form.changed_data:
            TaskService.notify_assignee(obj)
