"""Client helpers."""
from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Callable, Mapping, Optional

from .classify import (
    check_envelope,
    classify_exception,
    classify_response,
    decode_data,
    is_retryable,
)
from .errors import OperationCancelled, ShopifyGQLError
from .session import ShopifySession
from .tracing import describe_operation

logger = logging.getLogger(__name__)

SPAN_NAME = "shopify_graphql.send"


def encode_envelope(query: str, variables: Mapping[str, Any] | None) -> bytes:
    """Serialize the request body. ``variables`` is left out when empty."""
    payload: dict[str, Any] = {"query": query}
    if variables:
        payload["variables"] = dict(variables)
    return json.dumps(payload).encode("utf-8")


def _interrupted(cancel: Optional[threading.Event], deadline: Optional[float]) -> Optional[OperationCancelled]:
    if cancel is not None and cancel.is_set():
        return OperationCancelled("operation cancelled")
    if deadline is not None and time.monotonic() >= deadline:
        return OperationCancelled("deadline exceeded")
    return None


def _request_timeout(timeout: float, deadline: Optional[float]) -> float:
    if deadline is None:
        return timeout
    return max(0.0, min(timeout, deadline - time.monotonic()))


def _backoff(delay: float, cancel: Optional[threading.Event], deadline: Optional[float]) -> None:
    if deadline is not None and time.monotonic() + delay >= deadline:
        # next attempt could not start before the deadline
        raise OperationCancelled("deadline exceeded")
    if cancel is None:
        time.sleep(delay)
    elif cancel.wait(delay):
        raise OperationCancelled("operation cancelled")


def _attempt(
    session: ShopifySession,
    body: bytes,
    timeout: float,
    into: Optional[Callable[[Any], Any]],
) -> Any:
    headers = {"Content-Type": "application/json"}
    try:
        resp = session.http.post(session.graphql_url, headers=headers, data=body, timeout=timeout)
    except ShopifyGQLError:
        raise
    except Exception as exc:
        raise classify_exception(exc) from exc
    envelope = classify_response(resp)
    result = decode_data(envelope.data, into)
    check_envelope(envelope)
    return result


def execute(
    session: ShopifySession,
    query: str,
    variables: Mapping[str, Any] | None = None,
    *,
    into: Optional[Callable[[Any], Any]] = None,
    retries: int | None = None,
    timeout: float | None = None,
    cancel: Optional[threading.Event] = None,
    deadline: Optional[float] = None,
) -> Any:
    """Execute a GraphQL query or mutation against the Shopify API.

    The request body is encoded afresh for every attempt. Transient failures
    (timeouts, dropped connections, throttling, cost exceeded, 503, 504) are
    retried while the retry budget lasts, sleeping ``attempt * session.backoff``
    seconds between attempts. Everything else is raised on first occurrence.

    Args:
        session: A configured ShopifySession
        query: The GraphQL document to execute
        variables: Optional mapping of variables for the document
        into: Optional callable applied to the ``data`` payload, e.g. a
            dataclass or model constructor
        retries: Retry budget for this call (default: ``session.retries``).
            A budget of N allows at most N attempts; 0 and 1 both mean a
            single attempt.
        timeout: Request timeout in seconds (default: ``session.timeout``)
        cancel: Event that aborts the call when set. It is checked before
            each attempt, after each failure and during the backoff sleep;
            it cannot interrupt a request already on the wire, which runs
            until it answers or hits its timeout.
        deadline: Absolute ``time.monotonic()`` instant after which the call
            is abandoned. The timeout of each request is capped at the time
            remaining, so this also bounds a request in flight.

    Returns:
        The ``data`` payload (or ``into(data)``); None when the server sent
        no data and no errors.

    Raises:
        OperationCancelled: If ``cancel`` fired or ``deadline`` passed.
        ShopifyGQLError: Any other failure; ``attempts`` is set when the
            budget ran out.

    Example:
        >>> session = ShopifySession("shop.myshopify.com", Credentials(access_token=token))
        >>> data = execute(session, "{ shop { name } }")
        >>> data["shop"]["name"]
    """

    budget = session.retries if retries is None else retries
    if budget < 0:
        raise ValueError("retries must not be negative")
    request_timeout = session.timeout if timeout is None else timeout

    span = session.tracer.start_span(SPAN_NAME)
    span.description = describe_operation(query)
    span.data = {
        "GraphQL Query": query,
        "GraphQL Variables": dict(variables or {}),
        "URL": session.graphql_url,
    }
    error: Optional[BaseException] = None
    try:
        attempts = 0
        while True:
            attempts += 1
            interrupted = _interrupted(cancel, deadline)
            if interrupted is not None:
                raise interrupted
            body = encode_envelope(query, variables)
            logger.debug("GraphQL attempt %d to %s", attempts, session.graphql_url)
            try:
                return _attempt(session, body, _request_timeout(request_timeout, deadline), into)
            except ShopifyGQLError as exc:
                interrupted = _interrupted(cancel, deadline)
                if interrupted is not None:
                    raise interrupted from exc
                if budget <= 1:
                    exc.attempts = attempts
                    raise
                if not is_retryable(exc):
                    raise
                budget -= 1
                delay = attempts * session.backoff
                logger.warning(
                    "GraphQL attempt %d failed (%s), retrying in %.1fs",
                    attempts,
                    exc,
                    delay,
                )
                _backoff(delay, cancel, deadline)
    except BaseException as exc:
        error = exc
        raise
    finally:
        span.finish(error)


def query(session: ShopifySession, document: str, variables: Mapping[str, Any] | None = None, **kwargs: Any) -> Any:
    """Run a read operation. See :func:`execute` for the keyword arguments."""
    return execute(session, document, variables, **kwargs)


def mutate(session: ShopifySession, document: str, variables: Mapping[str, Any] | None = None, **kwargs: Any) -> Any:
    """Run a mutation. See :func:`execute` for the keyword arguments."""
    return execute(session, document, variables, **kwargs)


class ShopifyClient:
    """Bundles a session with the call helpers.

    >>> client = ShopifyClient(ShopifySession.from_env())
    >>> products = client.paginate(PRODUCTS_QUERY, ["products"])
    """

    def __init__(self, session: ShopifySession) -> None:
        self.session = session

    def query(self, document: str, variables: Mapping[str, Any] | None = None, **kwargs: Any) -> Any:
        return query(self.session, document, variables, **kwargs)

    def mutate(self, document: str, variables: Mapping[str, Any] | None = None, **kwargs: Any) -> Any:
        return mutate(self.session, document, variables, **kwargs)

    def paginate(
        self,
        document: str,
        connection_path: list[str],
        variables: Mapping[str, Any] | None = None,
        page_size: int = 250,
    ) -> list[Any]:
        from .paginate import fetch_all

        return fetch_all(self.session, document, connection_path, variables, page_size)

    def bulk_query(self, document: str, out: list[Any]) -> None:
        """Hand ``document`` to the session's bulk operation collaborator."""
        if self.session.bulk is None:
            raise ShopifyGQLError("no bulk operation runner configured")
        self.session.bulk.bulk_query(document, out)
