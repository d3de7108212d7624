"""
ASGI entrypoint: Django for HTTP, Channels for the /ws/ WebSocket.

    gunicorn chirpsite.asgi:application -c gunicorn.conf.py
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'chirpsite.settings')

# Populate the app registry before importing consumers and models
django_asgi_app = get_asgi_application()

from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from channels.security.websocket import AllowedHostsOriginValidator  # noqa: E402

from chirp.middleware import TokenAuthMiddleware  # noqa: E402
from chirp.routing import websocket_urlpatterns  # noqa: E402

websocket_application = TokenAuthMiddleware(URLRouter(websocket_urlpatterns))

application = ProtocolTypeRouter({
    'http': django_asgi_app,
    'websocket': AllowedHostsOriginValidator(websocket_application),
})
