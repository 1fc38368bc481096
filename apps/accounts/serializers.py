from rest_framework import serializers

from .models import User


class UserSummarySerializer(serializers.ModelSerializer):
    """Compact user representation embedded in posts, approvals and comments."""

    name = serializers.CharField(source='full_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'email']
        read_only_fields = fields


class CurrentUserSerializer(serializers.ModelSerializer):
    is_administrator = serializers.BooleanField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'full_name', 'role', 'is_administrator', 'is_verified']
        read_only_fields = fields
