"""Span hooks around GraphQL calls.

The client only needs ``start_span(name)`` and ``span.finish(error)``; plug in
an adapter for whatever tracing backend the application uses.
"""
from __future__ import annotations

import logging
import re
import time
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

_OPERATION_RE = re.compile(r"^\s*(query|mutation|subscription)\b\s*([_A-Za-z][_0-9A-Za-z]*)?")


def describe_operation(query: str) -> str:
    """Short span description taken from the operation header, e.g.
    ``"query products"``. Anonymous shorthand documents give ``"query"``."""
    match = _OPERATION_RE.match(query)
    if match is None:
        return "query"
    kind, name = match.groups()
    return f"{kind} {name}" if name else kind


class Span(Protocol):
    description: str
    data: dict[str, Any]

    def finish(self, error: Optional[BaseException] = None) -> None:
        ...


class Tracer(Protocol):
    def start_span(self, name: str) -> Span:
        ...


class NullSpan:
    def __init__(self, name: str) -> None:
        self.name = name
        self.description = ""
        self.data: dict[str, Any] = {}

    def finish(self, error: Optional[BaseException] = None) -> None:
        pass


class NullTracer:
    def start_span(self, name: str) -> NullSpan:
        return NullSpan(name)


class LoggingSpan(NullSpan):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.started = time.monotonic()

    def finish(self, error: Optional[BaseException] = None) -> None:
        elapsed = time.monotonic() - self.started
        status = "ok" if error is None else f"error: {error}"
        logger.debug(
            "%s %s finished in %.3fs (%s) url=%s",
            self.name,
            self.description,
            elapsed,
            status,
            self.data.get("URL"),
        )


class LoggingTracer:
    """Writes one debug record per finished span."""

    def start_span(self, name: str) -> LoggingSpan:
        return LoggingSpan(name)
