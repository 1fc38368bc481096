import logging

from channels.layers import get_channel_layer
from asgiref.sync import async_to_sync
from django.conf import settings
from django.core.cache import cache

from apps.notifications.models import Notification, NotificationType

logger = logging.getLogger(__name__)


def notifications_cache_key(user_id):
    return f"user_notifications:{user_id}"


def unread_count_cache_key(user_id):
    return f"user_unread_count:{user_id}"


def refresh_unread_count(user_id):
    """Recount unread notifications and store the result in the cache."""
    unread_count = Notification.objects.filter(recipient_id=user_id, is_read=False).count()
    cache.set(unread_count_cache_key(user_id), unread_count, settings.NOTIFICATION_CACHE_TIMEOUT)
    return unread_count


def invalidate_user_cache(user_id):
    cache.delete(notifications_cache_key(user_id))
    return refresh_unread_count(user_id)


def serialize_notification(notification):
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "post_id": notification.post_id,
        "is_read": notification.is_read,
        "created_at": notification.created_at.isoformat(),
    }


def notify_user(user, title, message, type=NotificationType.SYSTEM, post=None):
    """
    Persist a notification for ``user`` and push it to their open websockets.

    ``user`` and ``post`` may be model instances or primary keys. Raises on
    persistence or channel-layer failure; callers on a workflow path are
    expected to absorb that.
    """
    recipient_id = getattr(user, "pk", user)
    post_id = getattr(post, "pk", post)

    notification = Notification.objects.create(
        recipient_id=recipient_id,
        title=title,
        message=message,
        type=type,
        post_id=post_id,
        is_read=False,
    )

    unread_count = invalidate_user_cache(recipient_id)
    logger.debug("Notification %s stored for user %s (unread=%s)", notification.id, recipient_id, unread_count)

    # Send through WebSocket if the user is connected
    channel_layer = get_channel_layer()
    if channel_layer is not None:
        async_to_sync(channel_layer.group_send)(
            f"user_{recipient_id}",
            {
                "type": "send_notification",
                "content": serialize_notification(notification),
            },
        )

    if settings.NOTIFICATION_EMAILS_ENABLED:
        from apps.notifications.tasks import send_notification_email

        send_notification_email.delay(notification.id)

    return notification


def mark_notification_read(notification):
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=["is_read"])
    invalidate_user_cache(notification.recipient_id)
    return notification


def mark_all_read(user):
    count = Notification.objects.filter(recipient=user, is_read=False).update(is_read=True)
    cache.delete(notifications_cache_key(user.id))
    cache.set(unread_count_cache_key(user.id), 0, settings.NOTIFICATION_CACHE_TIMEOUT)
    return count


def get_recent_notifications(user, limit=20, unread_only=False):
    queryset = Notification.objects.filter(recipient=user).select_related("post")
    if unread_only:
        queryset = queryset.filter(is_read=False)
    return queryset.order_by("-created_at", "-id")[:limit]


def get_unread_notification_count(user_id):
    """Get the number of unread notifications for a user"""
    cached_count = cache.get(unread_count_cache_key(user_id))

    if cached_count is not None:
        return cached_count

    return refresh_unread_count(user_id)
