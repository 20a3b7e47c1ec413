from django.urls import path

from care.realtime.consumers import UpdatesConsumer
from care.realtime.inbox_consumers import InboxConsumer

websocket_urlpatterns = [
    path("ws/updates/", UpdatesConsumer.as_asgi()),
    path("ws/inbox/", InboxConsumer.as_asgi()),
]
