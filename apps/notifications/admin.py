from django.contrib import admin
from unfold.admin import ModelAdmin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(ModelAdmin):
    list_display = ("title", "type", "recipient", "post", "is_read", "created_at")
    list_filter = ("type", "is_read")
    search_fields = ("title", "message", "recipient__email")
    readonly_fields = ("recipient", "type", "title", "message", "post", "created_at")
