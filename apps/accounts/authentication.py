import logging

from rest_framework import authentication, exceptions
from rest_framework_simplejwt.authentication import JWTAuthentication

from apps.accounts.models import User

logger = logging.getLogger("security")


class HeaderTrustAuthentication(authentication.BaseAuthentication):
    """
    Authenticate requests whose identity was already resolved by the gateway.

    The gateway forwards ``X-User-Id`` (and ``X-User-Role``) after validating
    the session. The id is mapped onto a local User row; the role header is
    informational only, the stored role wins.
    """

    header_name = "HTTP_X_USER_ID"

    def authenticate(self, request):
        user_id = request.META.get(self.header_name)
        if not user_id:
            return None

        try:
            user = User.objects.get(pk=int(user_id))
        except (ValueError, TypeError):
            raise exceptions.AuthenticationFailed("Malformed user identity header.")
        except User.DoesNotExist:
            raise exceptions.AuthenticationFailed("User not found.")

        if not user.is_active:
            raise exceptions.AuthenticationFailed("User account is disabled.")

        claimed_role = request.META.get("HTTP_X_USER_ROLE")
        if claimed_role and claimed_role != user.role:
            logger.warning(
                "Role header mismatch for user %s: header=%s stored=%s",
                user.id, claimed_role, user.role,
            )

        return (user, None)

    def authenticate_header(self, request):
        return "X-User-Id"


class JWTHeaderAuthentication(JWTAuthentication):
    """
    Standard JWT authentication from Authorization header with enhanced validation.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None

        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        validated_token = self.get_validated_token(raw_token)
        user = self.get_user(validated_token)

        if not self.is_user_valid(user):
            raise exceptions.AuthenticationFailed("User account is invalid.")

        return (user, validated_token)

    def get_user(self, validated_token):
        user_id = validated_token.get("user_id")
        if user_id is None:
            raise exceptions.AuthenticationFailed(
                "Token contained no recognizable user identification"
            )

        try:
            return User.objects.get(id=user_id)
        except User.DoesNotExist:
            raise exceptions.AuthenticationFailed("User not found.")

    def is_user_valid(self, user):
        """
        Additional validation to ensure user account integrity.
        """
        if not user or user.is_anonymous:
            return False

        if not user.is_active or not user.is_verified:
            return False

        return True


class SecurityMiddleware:
    """
    Log requests that carry both a gateway identity header and a bearer token.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        identity_header = request.META.get(HeaderTrustAuthentication.header_name)
        auth_header = request.META.get("HTTP_AUTHORIZATION")

        if identity_header and auth_header:
            logger.warning(
                "Dual authentication attempt from %s: both identity header and bearer token present",
                request.META.get("REMOTE_ADDR"),
            )

        return self.get_response(request)
