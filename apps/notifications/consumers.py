import json
from channels.generic.websocket import AsyncWebsocketConsumer
from channels.db import database_sync_to_async

from .models import Notification
from . import services


class NotificationConsumer(AsyncWebsocketConsumer):
    async def connect(self):
        self.user = self.scope["user"]

        # Anonymous users can't receive notifications
        if self.user.is_anonymous:
            await self.close()
            return

        self.user_group_name = f"user_{self.user.id}"

        await self.channel_layer.group_add(
            self.user_group_name,
            self.channel_name
        )

        await self.accept()
        await self.send_unread_count()

    async def disconnect(self, close_code):
        if hasattr(self, 'user_group_name'):
            await self.channel_layer.group_discard(
                self.user_group_name,
                self.channel_name
            )

    async def receive(self, text_data):
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            await self.send(text_data=json.dumps({
                'type': 'error',
                'message': 'Invalid JSON received'
            }))
            return

        action = data.get('action')

        if action == 'mark_read':
            notification_id = data.get('notification_id')
            if notification_id and await self.mark_notification_read(notification_id):
                await self.send_unread_count()

        elif action == 'mark_all_read':
            if await self.mark_all_read() > 0:
                await self.send_unread_count()

    async def send_notification(self, event):
        await self.send(text_data=json.dumps({
            'type': 'new_notification',
            'notification': event['content']
        }))
        await self.send_unread_count()

    async def send_unread_count(self):
        unread_count = await self.get_unread_count()
        await self.send(text_data=json.dumps({
            'type': 'notification_count',
            'count': unread_count
        }))

    @database_sync_to_async
    def get_unread_count(self):
        return services.get_unread_notification_count(self.user.id)

    @database_sync_to_async
    def mark_notification_read(self, notification_id):
        try:
            notification = Notification.objects.get(id=notification_id, recipient=self.user)
        except (Notification.DoesNotExist, ValueError):
            return False
        if notification.is_read:
            return False
        services.mark_notification_read(notification)
        return True

    @database_sync_to_async
    def mark_all_read(self):
        return services.mark_all_read(self.user)
