from datetime import timedelta
from io import StringIO
from unittest import mock

from django.core import mail
from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework import status

from apps.notifications.models import Notification, NotificationType
from apps.notifications import services
from apps.notifications.tasks import clean_old_notifications, send_notification_email

User = get_user_model()


class NotificationModelTestCase(TestCase):
    """Test cases for Notification model"""

    def setUp(self):
        self.user = User.objects.create_user(
            email="notify@example.com",
            password="testpass123",
        )

    def test_create_notification(self):
        """Test creating a notification"""
        notification = Notification.objects.create(
            recipient=self.user,
            title="Test Notification",
            message="This is a test notification",
            type=NotificationType.POST_APPROVED,
        )
        self.assertEqual(notification.title, "Test Notification")
        self.assertEqual(notification.recipient, self.user)
        self.assertFalse(notification.is_read)
        self.assertIsNone(notification.post)

    def test_notification_ordering(self):
        """Test notifications are ordered by created_at desc"""
        notif1 = Notification.objects.create(
            recipient=self.user,
            title="First",
            message="First notification",
        )
        notif2 = Notification.objects.create(
            recipient=self.user,
            title="Second",
            message="Second notification",
        )
        notifications = Notification.objects.all()
        self.assertEqual(notifications[0], notif2)
        self.assertEqual(notifications[1], notif1)

    def test_notification_type_default(self):
        notification = Notification.objects.create(
            recipient=self.user,
            title="Maintenance",
            message="The platform restarts tonight",
        )
        self.assertEqual(notification.type, NotificationType.SYSTEM)


class NotificationServiceTestCase(TestCase):
    """Test cases for notification delivery and the unread count cache"""

    def setUp(self):
        cache.clear()
        self.user = User.objects.create_user(email="notify@example.com", password="testpass123")

    def test_notify_user_persists_and_counts(self):
        notification = services.notify_user(self.user, "Hello", "First message")
        self.assertEqual(notification.recipient, self.user)
        self.assertFalse(notification.is_read)
        self.assertEqual(cache.get(services.unread_count_cache_key(self.user.id)), 1)

        services.notify_user(self.user.id, "Hello again", "Second message", type=NotificationType.REMINDER)
        self.assertEqual(services.get_unread_notification_count(self.user.id), 2)

    def test_notify_user_pushes_to_group(self):
        with mock.patch("apps.notifications.services.get_channel_layer") as get_layer:
            layer = get_layer.return_value
            layer.group_send = mock.AsyncMock()
            notification = services.notify_user(self.user, "Hello", "Pushed")

        group, event = layer.group_send.call_args.args
        self.assertEqual(group, f"user_{self.user.id}")
        self.assertEqual(event["type"], "send_notification")
        self.assertEqual(event["content"]["id"], notification.id)

    @override_settings(NOTIFICATION_EMAILS_ENABLED=True)
    def test_notify_user_queues_email(self):
        with mock.patch("apps.notifications.tasks.send_notification_email.delay") as delay:
            notification = services.notify_user(self.user, "Hello", "Mailed")
        delay.assert_called_once_with(notification.id)

    def test_mark_read_updates_cache(self):
        notification = services.notify_user(self.user, "Hello", "Unread")
        services.mark_notification_read(notification)
        notification.refresh_from_db()
        self.assertTrue(notification.is_read)
        self.assertEqual(services.get_unread_notification_count(self.user.id), 0)

    def test_mark_all_read(self):
        for index in range(3):
            services.notify_user(self.user, f"Note {index}", "Body")
        self.assertEqual(services.mark_all_read(self.user), 3)
        self.assertEqual(services.get_unread_notification_count(self.user.id), 0)

    def test_cached_count_is_used(self):
        cache.set(services.unread_count_cache_key(self.user.id), 7)
        self.assertEqual(services.get_unread_notification_count(self.user.id), 7)


class NotificationAPITestCase(TestCase):
    """Test cases for notification endpoints"""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(email="notify@example.com", password="testpass123")
        self.other = User.objects.create_user(email="other@example.com", password="testpass123")
        self.client.force_authenticate(self.user)

    def test_list_notifications(self):
        first = services.notify_user(self.user, "First", "Body")
        services.notify_user(self.user, "Second", "Body")
        services.notify_user(self.other, "Not mine", "Body")
        services.mark_notification_read(first)

        response = self.client.get("/api/notifications/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([n["title"] for n in response.data["notifications"]], ["Second", "First"])
        self.assertEqual(response.data["unread_count"], 1)

        response = self.client.get("/api/notifications/", {"unread_only": "true"})
        self.assertEqual([n["title"] for n in response.data["notifications"]], ["Second"])

        response = self.client.get("/api/notifications/", {"limit": 1})
        self.assertEqual(len(response.data["notifications"]), 1)

    def test_mark_as_read(self):
        notification = services.notify_user(self.user, "Mine", "Body")
        response = self.client.post(f"/api/notifications/{notification.id}/read/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["is_read"])

    def test_mark_as_read_errors(self):
        theirs = services.notify_user(self.other, "Theirs", "Body")
        response = self.client.post(f"/api/notifications/{theirs.id}/read/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        theirs.refresh_from_db()
        self.assertFalse(theirs.is_read)

        response = self.client.post("/api/notifications/999999/read/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_read_all_and_unread_count(self):
        services.notify_user(self.user, "One", "Body")
        services.notify_user(self.user, "Two", "Body")

        response = self.client.get("/api/notifications/unread-count/")
        self.assertEqual(response.data["count"], 2)

        response = self.client.post("/api/notifications/read-all/")
        self.assertEqual(response.data["marked_as_read"], 2)

        response = self.client.get("/api/notifications/unread-count/")
        self.assertEqual(response.data["count"], 0)

    def test_delete_notification(self):
        mine = services.notify_user(self.user, "Mine", "Body")
        theirs = services.notify_user(self.other, "Theirs", "Body")

        response = self.client.delete(f"/api/notifications/{theirs.id}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.delete(f"/api/notifications/{mine.id}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Notification.objects.filter(pk=mine.pk).exists())
        self.assertEqual(services.get_unread_notification_count(self.user.id), 0)


class NotificationTaskTestCase(TestCase):
    """Test cases for Celery maintenance and email tasks"""

    def setUp(self):
        self.user = User.objects.create_user(
            email="notify@example.com", password="testpass123", first_name="Nora"
        )

    def test_clean_old_notifications(self):
        old_read = Notification.objects.create(recipient=self.user, title="Old", message="Body", is_read=True)
        old_unread = Notification.objects.create(recipient=self.user, title="Old unread", message="Body")
        recent_read = Notification.objects.create(recipient=self.user, title="Recent", message="Body", is_read=True)
        Notification.objects.filter(pk__in=[old_read.pk, old_unread.pk]).update(
            created_at=timezone.now() - timedelta(days=60)
        )

        deleted = clean_old_notifications(30)

        self.assertEqual(deleted, 1)
        self.assertFalse(Notification.objects.filter(pk=old_read.pk).exists())
        self.assertEqual(Notification.objects.filter(pk__in=[old_unread.pk, recent_read.pk]).count(), 2)

    def test_send_notification_email(self):
        notification = Notification.objects.create(
            recipient=self.user, title="Post Approved", message="Your post was approved"
        )
        self.assertTrue(send_notification_email(notification.id))
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Post Approved")
        self.assertEqual(mail.outbox[0].to, ["notify@example.com"])
        self.assertIn("Your post was approved", mail.outbox[0].body)

    def test_send_email_for_missing_notification(self):
        self.assertFalse(send_notification_email(999999))
        self.assertEqual(len(mail.outbox), 0)


class WarmNotificationCacheCommandTestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.user = User.objects.create_user(email="notify@example.com", password="testpass123")
        Notification.objects.create(recipient=self.user, title="Unread", message="Body")

    def test_warm_all_users(self):
        out = StringIO()
        call_command("warm_notification_cache", stdout=out)
        self.assertIn("notify@example.com: 1 unread", out.getvalue())
        self.assertEqual(cache.get(services.unread_count_cache_key(self.user.id)), 1)

    def test_unknown_user(self):
        out = StringIO()
        call_command("warm_notification_cache", "999999", stdout=out)
        self.assertIn("does not exist", out.getvalue())
