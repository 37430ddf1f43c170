# dm_core/common/middleware.py
from __future__ import annotations

import logging
import time

from django.utils.deprecation import MiddlewareMixin

from dm_core.common.api.exceptions import ensure_request_id

logger = logging.getLogger(__name__)


class RequestIdMiddleware(MiddlewareMixin):
    """
    Attaches request.request_id (reused by the error envelope) and logs one
    line per API request.

    Behavior:
      - Honors an incoming X-Request-Id header, otherwise generates one.
      - Echoes the id back as X-Request-Id on the response.
      - Only /api/ paths are logged; admin/static traffic is ignored.
    """

    HEADER_META_KEY = "HTTP_X_REQUEST_ID"
    LOGGED_PREFIXES = ("/api/",)

    def process_request(self, request):
        incoming = request.META.get(self.HEADER_META_KEY)
        if incoming:
            request.request_id = incoming[:64]
        ensure_request_id(request)
        request._dm_started = time.monotonic()
        return None

    def process_response(self, request, response):
        rid = ensure_request_id(request)
        response["X-Request-Id"] = rid

        path = getattr(request, "path", "") or ""
        if any(path.startswith(p) for p in self.LOGGED_PREFIXES):
            started = getattr(request, "_dm_started", None)
            elapsed_ms = (time.monotonic() - started) * 1000 if started else 0.0
            logger.info(
                "%s %s -> %s (%.1fms) rid=%s",
                request.method,
                path,
                response.status_code,
                elapsed_ms,
                rid,
            )
        return response
