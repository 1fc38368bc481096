from rest_framework import permissions


class IsVerified(permissions.BasePermission):
    """Allows access only to verified users."""
    message = "Your account has not been verified."

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.is_verified
