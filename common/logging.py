"""
Logging setup shared by both services.

Every line carries a timestamp and the service name. Structured context can
be attached with ``extra={"context": {...}}``; it is rendered after the
message as sorted ``key=value`` pairs so stock diagnostics stay greppable.
Logs go to stdout only (container friendly).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

_FORMAT = "%(asctime)s [%(levelname)s] %(service_name)s %(name)s %(message)s"


def format_context(context: dict[str, Any]) -> str:
    """
    >>> format_context({"product_id": "p1", "amount": 3})
    'amount=3 product_id=p1'
    """
    return " ".join(f"{key}={context[key]}" for key in sorted(context))


class _ServiceFormatter(logging.Formatter):
    """Injects service_name and renders the optional context mapping."""

    def __init__(self, service_name: str, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self._service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        record.service_name = getattr(record, "service_name", self._service_name)
        line = super().format(record)
        context = getattr(record, "context", None)
        if context:
            first, newline, rest = line.partition("\n")
            line = f"{first} {format_context(context)}{newline}{rest}"
        return line


def setup_logging(service_name: str, level: str | None = None) -> None:
    """
    Configure the root logger for `service_name`.

    Level comes from `level`, then LOG_LEVEL, then INFO. Repeated calls
    reconfigure the existing handlers instead of stacking new ones.
    """
    root = logging.getLogger()
    root.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())
    formatter = _ServiceFormatter(service_name, fmt=_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        root.addHandler(handler)
        return
    for h in root.handlers:
        h.setFormatter(formatter)
