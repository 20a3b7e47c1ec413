"""
WSGI config for the Caresora project.

It exposes the WSGI callable as a module-level variable named ``application``.
Realtime messaging needs the ASGI entrypoint (``caresora.asgi``); this one
serves the plain HTTP API only.
"""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'caresora.settings')

application = get_wsgi_application()
