"""
Role-based routing helpers.

Every authenticated response that lands a user somewhere (login,
``/api/auth/me``) uses these helpers so that each role is always sent
to the dashboard matching its stored role.
"""
from __future__ import annotations

from typing import Optional

LOGIN_PATH = '/login'

DASHBOARDS = {
    'admin': '/dashboard/admin',
    'doctor': '/dashboard/doctor',
    'worker': '/dashboard/worker',
    'patient': '/dashboard/patient',
}

NAV_LINKS = {
    'admin': [
        {'id': 'admin-dashboard', 'label': 'Dashboard', 'href': '/dashboard/admin'},
        {'id': 'admin-users', 'label': 'Users', 'href': '/dashboard/admin/app_users'},
        {'id': 'admin-requests', 'label': 'Access Requests', 'href': '/dashboard/admin/requests'},
    ],
    'doctor': [
        {'id': 'doctor-dashboard', 'label': 'Dashboard', 'href': '/dashboard/doctor'},
        {'id': 'doctor-messages', 'label': 'Worker Messages', 'href': '/dashboard/doctor/messages'},
    ],
    'worker': [
        {'id': 'worker-dashboard', 'label': 'Dashboard', 'href': '/dashboard/worker'},
        {'id': 'worker-messages', 'label': 'Messages', 'href': '/dashboard/worker/messages'},
    ],
    'patient': [
        {'id': 'patient-dashboard', 'label': 'Dashboard', 'href': '/dashboard/patient'},
        {'id': 'patient-contact', 'label': 'Contact Worker', 'href': '/dashboard/patient/contact'},
        {'id': 'patient-request-access', 'label': 'Request Access', 'href': '/dashboard/patient/request-access'},
    ],
}


def dashboard_for(role: Optional[str]) -> str:
    """Return the dashboard path for ``role``; unknown roles go back to login."""
    return DASHBOARDS.get(role or '', LOGIN_PATH)


def nav_links_for(role: Optional[str]) -> list[dict]:
    return [dict(link) for link in NAV_LINKS.get(role or '', [])]
