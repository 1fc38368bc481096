from django.core.validators import MinValueValidator
from django.db import models

from apps.accounts.models import User
from apps.campaigns.models import Program, Campaign

from .workflow import PostStatus, ApprovalStatus, LOCKED_POST_STATUSES


class Post(models.Model):
    caption = models.TextField()
    image_url = models.URLField(max_length=500, blank=True, null=True)
    budget = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=PostStatus.choices,
        default=PostStatus.PENDING_APPROVAL,
        db_index=True,
    )
    program = models.ForeignKey(
        Program,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="posts",
    )
    campaign = models.ForeignKey(
        Campaign,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="posts",
    )
    creator = models.ForeignKey(User, on_delete=models.SET_NULL, related_name="posts", null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.caption[:40]} ({self.status})"

    @property
    def is_locked(self):
        """Approved and published posts can no longer be edited."""
        return self.status in LOCKED_POST_STATUSES


class Approval(models.Model):
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name="approvals")
    # PROTECT keeps the 1..N order sequence intact when users are removed
    approver = models.ForeignKey(User, on_delete=models.PROTECT, related_name="post_approvals")
    order = models.PositiveIntegerField()
    status = models.CharField(
        max_length=20,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.PENDING,
    )
    comment = models.TextField(blank=True, null=True)
    decided_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["order"]
        constraints = [
            models.UniqueConstraint(fields=["post", "order"], name="unique_approval_order_per_post"),
            models.UniqueConstraint(fields=["post", "approver"], name="unique_approver_per_post"),
        ]

    def __str__(self):
        return f"Post {self.post_id} #{self.order} {self.approver_id}: {self.status}"


class PostComment(models.Model):
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name="comments")
    author = models.ForeignKey(User, on_delete=models.CASCADE, related_name="post_comments")
    comment = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.author} on post {self.post_id}"
