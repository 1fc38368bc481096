from rest_framework import serializers

from .models import Notification


class NotificationPostSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    caption = serializers.CharField()
    status = serializers.CharField()


class NotificationSerializer(serializers.ModelSerializer):
    post = NotificationPostSerializer(read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'type', 'title', 'message', 'post', 'is_read', 'created_at']
        read_only_fields = fields
