import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.utils.timezone import now

from apps.notifications.models import Notification

logger = logging.getLogger(__name__)


@shared_task
def clean_old_notifications(days=None):
    """Delete read notifications older than the retention window."""
    days = settings.NOTIFICATION_RETENTION_DAYS if days is None else days
    deleted, _ = Notification.objects.filter(
        is_read=True, created_at__lt=now() - timedelta(days=days)
    ).delete()
    logger.info("Deleted %s read notifications older than %s days", deleted, days)
    return deleted


@shared_task
def send_notification_email(notification_id):
    """Mirror a stored notification to the recipient's inbox."""
    try:
        notification = Notification.objects.select_related("recipient").get(pk=notification_id)
    except Notification.DoesNotExist:
        logger.warning("Notification %s vanished before its email was sent", notification_id)
        return False

    recipient = notification.recipient
    send_mail(
        notification.title,
        f"Hello {recipient.display_name}, {notification.message}",
        settings.DEFAULT_FROM_EMAIL,
        [recipient.email],
        fail_silently=False,
    )
    return True
