from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "type", "title", "recipient", "is_read", "created_at")
    list_filter = ("type", "is_read")
    search_fields = ("title", "message")
    raw_id_fields = ("recipient", "sender", "case")
