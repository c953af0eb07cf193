# mc_core/common/correlation.py
"""
Per-request correlation id, shared by RequestIdMiddleware and the logging config.
Stdlib only: LOGGING imports this before Django apps are ready.
"""
from __future__ import annotations

import logging
from threading import local

_request_context = local()


def get_request_id() -> str | None:
    return getattr(_request_context, "request_id", None)


def set_request_id(rid: str | None) -> None:
    _request_context.request_id = rid


class RequestIdLogFilter(logging.Filter):
    """
    Injects the current request_id into every log record ("-" outside a request).
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True
