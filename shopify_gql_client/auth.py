"""Credential handling for outbound requests."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, TYPE_CHECKING

from .transport import Transport

if TYPE_CHECKING:
    import requests

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"
STOREFRONT_TOKEN_HEADER = "X-Shopify-Storefront-Access-Token"

ACCESS_TOKEN = "access_token"
BASIC = "basic"
STOREFRONT = "storefront"


@dataclass(frozen=True)
class Credentials:
    """The credentials a client may authenticate with.

    Several may be configured, but only one is ever sent. Precedence is
    access token, then private app key/password, then storefront token.

    Attributes:
        access_token: Admin API access token (``X-Shopify-Access-Token``).
        api_key: Private app API key, used with ``password`` for HTTP Basic.
        password: Private app password.
        storefront_token: Storefront API token
            (``X-Shopify-Storefront-Access-Token``).
    """

    access_token: str = ""
    api_key: str = ""
    password: str = ""
    storefront_token: str = ""

    def active_scheme(self) -> Optional[str]:
        if self.access_token:
            return ACCESS_TOKEN
        if self.api_key and self.password:
            return BASIC
        if self.storefront_token:
            return STOREFRONT
        return None

    def __repr__(self) -> str:
        return f"Credentials(scheme={self.active_scheme()!r})"


class AuthenticatingTransport(Transport):
    """Decorates another transport with exactly one credential per request.

    Caller headers are copied, never mutated. With no credential configured
    the request is forwarded unchanged. Responses and exceptions from the
    inner transport pass through untouched.
    """

    def __init__(self, inner: Transport, credentials: Credentials) -> None:
        self.inner = inner
        self.credentials = credentials

    def post(
        self,
        url: str,
        headers: Mapping[str, str],
        data: bytes,
        timeout: float,
        auth: Optional[tuple[str, str]] = None,
    ) -> "requests.Response":
        out = dict(headers)
        scheme = self.credentials.active_scheme()
        if scheme == ACCESS_TOKEN:
            out[ACCESS_TOKEN_HEADER] = self.credentials.access_token
            auth = None
        elif scheme == BASIC:
            auth = (self.credentials.api_key, self.credentials.password)
        elif scheme == STOREFRONT:
            out[STOREFRONT_TOKEN_HEADER] = self.credentials.storefront_token
            auth = None
        return self.inner.post(url, out, data, timeout, auth=auth)
