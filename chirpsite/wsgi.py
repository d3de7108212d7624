"""
WSGI entrypoint for HTTP-only deployments. Real-time events need the ASGI
application in chirpsite/asgi.py.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'chirpsite.settings')

application = get_wsgi_application()
