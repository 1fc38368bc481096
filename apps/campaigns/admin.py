from django.contrib import admin
from unfold.admin import ModelAdmin

from .models import Program, Campaign


@admin.register(Program)
class ProgramAdmin(ModelAdmin):
    list_display = ("name", "campus", "created_at")
    search_fields = ("name", "campus")


@admin.register(Campaign)
class CampaignAdmin(ModelAdmin):
    list_display = ("name", "type", "program", "created_at")
    list_filter = ("type",)
    search_fields = ("name",)
