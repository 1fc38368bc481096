from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework import status

from .models import Notification
from .serializers import NotificationSerializer
from . import services

MAX_NOTIFICATIONS_LIMIT = 50
DEFAULT_NOTIFICATIONS_LIMIT = 20


def _parse_limit(raw):
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_NOTIFICATIONS_LIMIT
    return min(MAX_NOTIFICATIONS_LIMIT, max(1, limit))


class UserNotificationsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        unread_only = request.query_params.get('unread_only', 'false').lower() == 'true'
        limit = _parse_limit(request.query_params.get('limit'))

        notifications = services.get_recent_notifications(
            request.user, limit=limit, unread_only=unread_only
        )
        return Response({
            "notifications": NotificationSerializer(notifications, many=True).data,
            "unread_count": services.get_unread_notification_count(request.user.id),
        })


class MarkNotificationAsReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        try:
            notification = Notification.objects.get(id=pk)
        except Notification.DoesNotExist:
            return Response(
                {"error": "Notification not found"}, status=status.HTTP_404_NOT_FOUND
            )

        if notification.recipient_id != request.user.id:
            return Response(
                {"error": "You do not have permission to mark this notification as read"},
                status=status.HTTP_403_FORBIDDEN,
            )

        services.mark_notification_read(notification)
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)


class MarkAllAsReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        count = services.mark_all_read(request.user)
        return Response({"marked_as_read": count})


class UnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({"count": services.get_unread_notification_count(request.user.id)})


class DeleteNotificationView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, pk):
        try:
            notification = Notification.objects.get(id=pk, recipient=request.user)
        except Notification.DoesNotExist:
            return Response(
                {"error": "Notification not found"}, status=status.HTTP_404_NOT_FOUND
            )

        notification.delete()
        services.invalidate_user_cache(request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)
