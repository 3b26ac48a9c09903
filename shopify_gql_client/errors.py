"""Error classes for the Shopify GraphQL client."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

SNIPPET_LIMIT = 500

MAX_COST_EXCEEDED = "MAX_COST_EXCEEDED"
THROTTLED = "Throttled"


def snippet(text: str, limit: int = SNIPPET_LIMIT) -> str:
    return text if len(text) <= limit else text[:limit]


def _as_int(value: Any) -> int:
    # null, missing or non-numeric counts read as 0
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class ShopifyGQLError(Exception):
    """Base class for every failure raised by the client.

    ``attempts`` is set when the executor gives up after retrying; the message
    then reads ``after N attempts: <message>``.
    """

    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.attempts: Optional[int] = None

    def __str__(self) -> str:
        if self.attempts is not None:
            return f"after {self.attempts} attempts: {self.message}"
        return self.message


class OperationCancelled(ShopifyGQLError):
    """Raised when the caller's cancel event fires or its deadline passes."""


class TransportError(ShopifyGQLError):
    """Failure below the HTTP layer (connection, DNS, timeout)."""

    def __init__(self, message: str, *, timeout: bool = False, temporary: bool = False) -> None:
        super().__init__(message)
        self.timeout = timeout
        self.temporary = temporary

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        return self.timeout or self.temporary


class HTTPStatusError(ShopifyGQLError):
    """Raised for a recognised non-200 HTTP status."""

    status_code: int = 0
    reason = ""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or f"HTTP {self.status_code}: {self.reason}")


class PaymentRequiredError(HTTPStatusError):
    status_code = 402
    reason = "Payment Required"


class LockedError(HTTPStatusError):
    status_code = 423
    reason = "Locked"


class UnauthorizedError(HTTPStatusError):
    status_code = 401
    reason = "Unauthorized"


class ForbiddenError(HTTPStatusError):
    status_code = 403
    reason = "Forbidden"


class NotFoundError(HTTPStatusError):
    status_code = 404
    reason = "Not Found"


class InternalServerError(HTTPStatusError):
    status_code = 500
    reason = "Internal Server Error"


class ServiceUnavailableError(HTTPStatusError):
    status_code = 503
    reason = "Service Unavailable"
    retryable = True


class GatewayTimeoutError(HTTPStatusError):
    status_code = 504
    reason = "Gateway Timeout"
    retryable = True


STATUS_ERRORS: dict[int, type[HTTPStatusError]] = {
    cls.status_code: cls
    for cls in (
        PaymentRequiredError,
        LockedError,
        UnauthorizedError,
        ForbiddenError,
        NotFoundError,
        InternalServerError,
        ServiceUnavailableError,
        GatewayTimeoutError,
    )
}


class UnexpectedStatusError(ShopifyGQLError):
    """Any non-200 status without a dedicated class."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = snippet(body)
        super().__init__(f"non-200 OK status code: {status_code}: {self.body}")


class DecodeError(ShopifyGQLError):
    """The response envelope or its ``data`` payload could not be decoded.

    ``stage`` is ``"envelope"`` or ``"data"``.
    """

    def __init__(self, stage: str, detail: str, payload: str) -> None:
        self.stage = stage
        self.snippet = snippet(payload)
        label = "JSON decode response" if stage == "envelope" else "unmarshal data"
        super().__init__(f"{label}: {detail}: {self.snippet}")


@dataclass(frozen=True)
class ErrorExtensions:
    code: str = ""
    cost: int = 0
    max_cost: int = 0
    documentation: str = ""


@dataclass(frozen=True)
class ErrorLocation:
    line: int
    column: int


@dataclass(frozen=True)
class GraphQLErrorRecord:
    """One entry of the GraphQL ``errors`` array."""

    message: str
    extensions: ErrorExtensions = field(default_factory=ErrorExtensions)
    locations: tuple[ErrorLocation, ...] = ()

    @classmethod
    def from_dict(cls, raw: Any) -> "GraphQLErrorRecord":
        if not isinstance(raw, Mapping):
            return cls(message=str(raw))
        ext = raw.get("extensions")
        if not isinstance(ext, Mapping):
            ext = {}
        extensions = ErrorExtensions(
            code=str(ext.get("code") or ""),
            cost=_as_int(ext.get("cost")),
            max_cost=_as_int(ext.get("maxCost")),
            documentation=str(ext.get("documentation") or ""),
        )
        raw_locations = raw.get("locations")
        if not isinstance(raw_locations, list):
            raw_locations = []
        locations = tuple(
            ErrorLocation(_as_int(loc.get("line")), _as_int(loc.get("column")))
            for loc in raw_locations
            if isinstance(loc, Mapping)
        )
        return cls(str(raw.get("message", "")), extensions, locations)


class ProtocolError(ShopifyGQLError):
    """The server answered with a non-empty GraphQL ``errors`` array.

    The first record's message is the error string; all records stay
    available, in order, on ``errors``.
    """

    def __init__(self, errors: Sequence[GraphQLErrorRecord]) -> None:
        self.errors = list(errors)
        super().__init__(self.errors[0].message if self.errors else "GraphQL error")

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.errors]


class ThrottledError(ProtocolError):
    retryable = True


class CostExceededError(ProtocolError):
    """A record carried the ``MAX_COST_EXCEEDED`` extension code."""

    retryable = True
