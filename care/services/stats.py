from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db.models import Count

User = get_user_model()

ROLE_COUNTS_KEY = 'dash:role_counts'


def compute_role_counts() -> dict:
    rows = User.objects.values('role').annotate(n=Count('id'))
    counts = {'patient': 0, 'doctor': 0, 'worker': 0, 'admin': 0}
    for row in rows:
        counts[row['role']] = row['n']
    return counts


def role_counts() -> dict:
    """Return user counts per role, cached for ``DASHBOARD_CACHE_SECONDS``."""
    cached = cache.get(ROLE_COUNTS_KEY)
    if cached:
        return cached
    counts = compute_role_counts()
    cache.set(ROLE_COUNTS_KEY, counts, settings.DASHBOARD_CACHE_SECONDS)
    return counts


def invalidate_role_counts() -> None:
    cache.delete(ROLE_COUNTS_KEY)
