from django.core.management.base import BaseCommand
from django.core.cache import cache
from django.conf import settings
from django.utils import timezone
from channels.layers import get_channel_layer
from asgiref.sync import async_to_sync

from care.realtime.consumers import UPDATES_GROUP
from care.services.stats import ROLE_COUNTS_KEY, compute_role_counts


class Command(BaseCommand):
    help = "Warm and refresh API caches; broadcast WebSocket refresh event."

    def handle(self, *args, **options):
        now = timezone.now()
        keys_refreshed = []

        cache.set(ROLE_COUNTS_KEY, compute_role_counts(), settings.DASHBOARD_CACHE_SECONDS)
        keys_refreshed.append(ROLE_COUNTS_KEY)

        channel_layer = get_channel_layer()
        if channel_layer is not None:
            event = {"type": "broadcast.refresh", "version": int(now.timestamp()), "ts": now.isoformat(), "keys": keys_refreshed}
            async_to_sync(channel_layer.group_send)(UPDATES_GROUP, event)

        self.stdout.write(self.style.SUCCESS(f"Refreshed {len(keys_refreshed)} keys at {now}"))
