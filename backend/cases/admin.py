from django.contrib import admin

from .models import Case, CaseLog


class CaseLogInline(admin.TabularInline):
    model = CaseLog
    extra = 0
    readonly_fields = ("user", "action", "details", "created_at")


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "status", "priority",
                    "assigned_to", "due_date", "created_at")
    list_filter = ("status", "priority")
    search_fields = ("title", "description")
    raw_id_fields = ("created_by", "assigned_to", "completed_by")
    inlines = [CaseLogInline]
