"""Map transport outcomes onto the error taxonomy in :mod:`.errors`."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import requests

from .errors import (
    MAX_COST_EXCEEDED,
    STATUS_ERRORS,
    THROTTLED,
    CostExceededError,
    DecodeError,
    GraphQLErrorRecord,
    ProtocolError,
    ShopifyGQLError,
    ThrottledError,
    TransportError,
    UnexpectedStatusError,
)


@dataclass(frozen=True)
class Envelope:
    """Decoded response body. ``data`` is None when absent or null."""

    data: Any = None
    errors: tuple[GraphQLErrorRecord, ...] = ()
    extensions: dict[str, Any] = field(default_factory=dict)


def classify_exception(exc: BaseException) -> ShopifyGQLError:
    """Classify an exception raised by the transport."""
    if isinstance(exc, ShopifyGQLError):
        return exc
    if str(exc) == THROTTLED:
        return ThrottledError([GraphQLErrorRecord(THROTTLED)])
    if isinstance(exc, requests.exceptions.Timeout):
        return TransportError(str(exc), timeout=True)
    if isinstance(exc, requests.exceptions.ConnectionError):
        return TransportError(str(exc), temporary=True)
    if isinstance(exc, (TimeoutError, ConnectionError)):
        return TransportError(
            str(exc),
            timeout=isinstance(exc, TimeoutError),
            temporary=isinstance(exc, ConnectionError),
        )
    return TransportError(str(exc) or type(exc).__name__)


def classify_response(resp: Any) -> Envelope:
    """Check the HTTP status and decode the envelope.

    Raises the matching status error, :class:`UnexpectedStatusError` or a
    ``DecodeError`` with ``stage="envelope"``. GraphQL ``errors`` are not
    inspected here, see :func:`check_envelope`.
    """
    status = getattr(resp, "status_code", None)
    if status is None:
        raise TransportError("Transport response missing status_code")
    error_cls = STATUS_ERRORS.get(status)
    if error_cls is not None:
        raise error_cls()
    if status != 200:
        raise UnexpectedStatusError(status, getattr(resp, "text", "") or "")
    try:
        body = resp.json()
    except ValueError as exc:
        raise DecodeError("envelope", str(exc), getattr(resp, "text", "") or "") from exc
    if not isinstance(body, dict):
        raise DecodeError("envelope", "expected a JSON object", getattr(resp, "text", "") or "")
    errors = body.get("errors") or []
    if not isinstance(errors, list):
        raise DecodeError("envelope", "errors is not a list", json.dumps(errors, default=str))
    try:
        records = tuple(GraphQLErrorRecord.from_dict(e) for e in errors)
    except Exception as exc:
        raise DecodeError("envelope", f"malformed errors: {exc}", json.dumps(errors, default=str)) from exc
    extensions = body.get("extensions")
    return Envelope(
        data=body.get("data"),
        errors=records,
        extensions=extensions if isinstance(extensions, dict) else {},
    )


def decode_data(data: Any, into: Optional[Callable[[Any], Any]]) -> Any:
    """Apply ``into`` to the ``data`` payload, reporting any failure of ``into``
    as a data-stage decode error."""
    if into is None or data is None:
        return data
    try:
        return into(data)
    except Exception as exc:
        raise DecodeError("data", str(exc), json.dumps(data, default=str)) from exc


def check_envelope(envelope: Envelope) -> None:
    """Raise for a non-empty GraphQL ``errors`` array.

    A cost-exceeded record anywhere wins over everything else; a leading
    ``Throttled`` message comes next; otherwise the whole list is raised as a
    :class:`ProtocolError`.
    """
    if not envelope.errors:
        return
    if any(e.extensions.code == MAX_COST_EXCEEDED for e in envelope.errors):
        raise CostExceededError(envelope.errors)
    if envelope.errors[0].message == THROTTLED:
        raise ThrottledError(envelope.errors)
    raise ProtocolError(envelope.errors)


def is_retryable(err: BaseException) -> bool:
    return bool(getattr(err, "retryable", False))
