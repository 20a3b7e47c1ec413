"""
Administrative dashboard endpoint.

Provides the per-role user counts shown on the admin landing page.
Only administrators may access this endpoint.  The counts are served
from cache (see :mod:`care.services.stats`) and refreshed whenever a
signup or role change invalidates them.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsAdminRole
from ..services.stats import role_counts


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_dashboard(request):
    """Return patient, doctor and worker counts for administrators."""
    counts = role_counts()
    return Response({
        'ok': True,
        'patients': counts.get('patient', 0),
        'doctors': counts.get('doctor', 0),
        'workers': counts.get('worker', 0),
        'admins': counts.get('admin', 0),
    })
