# mc_core/common/middleware.py
from __future__ import annotations

from django.utils.deprecation import MiddlewareMixin

from mc_core.common.api.exceptions import ensure_request_id
from mc_core.common.correlation import set_request_id


class RequestIdMiddleware(MiddlewareMixin):
    """
    Assigns every request a request_id.

    Behavior:
      - Reuses an inbound X-Request-Id header when present.
      - Otherwise generates one (same generator the error envelope uses).
      - Stores it thread-locally so RequestIdLogFilter can stamp log records.
      - Echoes it back in the X-Request-Id response header.
    """

    REQUEST_ID_META_KEY = "HTTP_X_REQUEST_ID"
    RESPONSE_HEADER = "X-Request-Id"

    def process_request(self, request):
        inbound = request.META.get(self.REQUEST_ID_META_KEY)
        if inbound:
            request.request_id = inbound[:64]
        set_request_id(ensure_request_id(request))
        return None

    def process_response(self, request, response):
        rid = getattr(request, "request_id", None)
        if rid:
            response[self.RESPONSE_HEADER] = rid
        set_request_id(None)
        return response
