import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'educrm.settings')
import django
django.setup()  # must run before importing consumers and the websocket auth middleware

from django.core.asgi import get_asgi_application
from channels.routing import ProtocolTypeRouter, URLRouter
from channels.security.websocket import AllowedHostsOriginValidator
from educrm.websocket_auth import TokenAuthMiddlewareStack

import apps.notifications.routing


application = ProtocolTypeRouter({
    "http": get_asgi_application(),
    "websocket": AllowedHostsOriginValidator(
        TokenAuthMiddlewareStack(
            URLRouter(apps.notifications.routing.websocket_urlpatterns)
        )
    ),
})
