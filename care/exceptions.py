import logging

from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response

logger = logging.getLogger(__name__)

PASSTHROUGH_HEADERS = ('WWW-Authenticate', 'Retry-After')


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception("unhandled API error: %s", exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'internal server error'}}, status=500)
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    code = getattr(exc, 'default_code', None) or 'api_error'
    out = Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code)
    for h in PASSTHROUGH_HEADERS:
        if h in resp:
            out[h] = resp[h]
    return out
