from django.db import models


class NotificationType(models.TextChoices):
    POST_APPROVAL_REQUEST = "POST_APPROVAL_REQUEST", "Post approval request"
    POST_APPROVED = "POST_APPROVED", "Post approved"
    POST_FULLY_APPROVED = "POST_FULLY_APPROVED", "Post fully approved"
    POST_REJECTED = "POST_REJECTED", "Post rejected"
    SYSTEM = "SYSTEM", "System"
    REMINDER = "REMINDER", "Reminder"


class Notification(models.Model):
    recipient = models.ForeignKey(
        "accounts.User", on_delete=models.CASCADE, related_name="notifications"
    )
    type = models.CharField(
        max_length=50, choices=NotificationType.choices, default=NotificationType.SYSTEM
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    post = models.ForeignKey(
        "posts.Post",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="notif_recipient_read_idx"),
        ]

    def __str__(self):
        return f"{self.type} -> {self.recipient_id}: {self.title}"
