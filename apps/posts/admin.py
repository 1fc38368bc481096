from django.contrib import admin
from unfold.admin import ModelAdmin, TabularInline

from .models import Post, Approval, PostComment


class ApprovalInline(TabularInline):
    """Approval history is written only by the workflow."""
    model = Approval
    extra = 0
    can_delete = False
    fields = ("order", "approver", "status", "comment", "decided_at")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


class PostCommentInline(TabularInline):
    model = PostComment
    extra = 0
    fields = ("author", "comment", "created_at")
    readonly_fields = ("created_at",)


@admin.register(Post)
class PostAdmin(ModelAdmin):
    list_display = ("id", "short_caption", "status", "creator", "program", "campaign", "start_date", "created_at")
    list_filter = ("status", "program", "campaign")
    search_fields = ("caption", "creator__email")
    readonly_fields = ("status", "creator", "created_at", "updated_at")
    inlines = [ApprovalInline, PostCommentInline]

    @admin.display(description="Caption")
    def short_caption(self, obj):
        return obj.caption[:60]
