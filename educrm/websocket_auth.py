import logging
import urllib.parse

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from rest_framework_simplejwt.tokens import AccessToken
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

logger = logging.getLogger("security")


class TokenAuthMiddleware(BaseMiddleware):
    """Resolve ``scope["user"]`` from a JWT passed as ``?token=`` on the socket URL."""

    async def __call__(self, scope, receive, send):
        # Import inside the method to avoid AppRegistryNotReady error
        from django.contrib.auth.models import AnonymousUser

        scope["user"] = AnonymousUser()

        query_string = scope.get("query_string", b"").decode()
        client_info = scope.get("client") or ["unknown", 0]
        client_ip = client_info[0]

        if query_string:
            try:
                query_params = dict(urllib.parse.parse_qsl(query_string))
                token = query_params.get("token", "")
                if token:
                    access_token = AccessToken(token)
                    user_id = access_token.payload.get("user_id")
                    if user_id:
                        scope["user"] = await self.get_user(user_id)
                    else:
                        logger.warning("WebSocket auth failed from %s: no user_id in token", client_ip)
            except (InvalidToken, TokenError) as e:
                logger.warning("WebSocket auth failed from %s: invalid token - %s", client_ip, e)
            except (ValueError, UnicodeDecodeError) as e:
                logger.warning("WebSocket auth failed from %s: query string parsing error - %s", client_ip, e)

        return await super().__call__(scope, receive, send)

    @database_sync_to_async
    def get_user(self, user_id):
        from django.contrib.auth.models import AnonymousUser
        from apps.accounts.models import User

        try:
            return User.objects.get(id=user_id, is_active=True)
        except User.DoesNotExist:
            return AnonymousUser()


def TokenAuthMiddlewareStack(inner):
    return TokenAuthMiddleware(inner)
