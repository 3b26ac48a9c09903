"""Transport abstractions."""
from __future__ import annotations

from abc import ABC, abstractmethod
import os
from typing import Mapping, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    import requests


class Transport(ABC):
    """Abstract transport interface.

    ``data`` is the encoded request body. ``auth`` is an optional
    ``(username, password)`` pair for HTTP Basic authentication.
    """

    @abstractmethod
    def post(
        self,
        url: str,
        headers: Mapping[str, str],
        data: bytes,
        timeout: float,
        auth: Optional[tuple[str, str]] = None,
    ) -> "requests.Response":  # noqa: D401
        """Send a POST request."""
        raise NotImplementedError


class RequestsTransport(Transport):
    """Transport using the requests library.

    Only connection establishment is retried at this level: a request that
    reached the server is never replayed here, the executor owns that.

    Args:
        connect_retries: Attempts to re-open a refused or unreachable
            connection. Defaults to the ``SHOPIFY_GQL_CONNECT_RETRIES`` env var
            or ``0``.
        backoff: Backoff factor between connection attempts. Defaults to the
            ``SHOPIFY_GQL_CONNECT_BACKOFF`` env var or ``0.5`` seconds.
        force_close: If True, send ``Connection: close`` with each request to
            disable keep-alives. Set to False to allow persistent connections.
    """

    def __init__(
        self,
        *,
        connect_retries: int | None = None,
        backoff: float | None = None,
        force_close: bool = True,
    ) -> None:
        import requests
        from requests.adapters import HTTPAdapter
        from urllib3.util import Retry

        connect_total = connect_retries if connect_retries is not None else int(
            os.getenv("SHOPIFY_GQL_CONNECT_RETRIES", "0")
        )
        backoff_factor = backoff if backoff is not None else float(
            os.getenv("SHOPIFY_GQL_CONNECT_BACKOFF", "0.5")
        )
        retry = Retry(
            total=connect_total,
            connect=connect_total,
            read=0,
            status=0,
            other=0,
            backoff_factor=backoff_factor,
            allowed_methods=["POST"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session = requests.Session()
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        if force_close:
            session.headers["Connection"] = "close"
        self._session = session

    def post(
        self,
        url: str,
        headers: Mapping[str, str],
        data: bytes,
        timeout: float,
        auth: Optional[tuple[str, str]] = None,
    ) -> "requests.Response":
        return self._session.post(url, headers=dict(headers), data=data, timeout=timeout, auth=auth)

    def close(self) -> None:
        self._session.close()
