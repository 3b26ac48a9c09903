"""Session object for the Shopify GraphQL API."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional

from .auth import STOREFRONT, AuthenticatingTransport, Credentials
from .bulk import BulkQuerier
from .tracing import NullTracer, Tracer
from .transport import RequestsTransport, Transport

API_PROTOCOL = "https"
ADMIN_API_PATH = "admin/api"
STOREFRONT_API_PATH = "api"
DEFAULT_API_VERSION = "2024-01"
API_ENDPOINT = "graphql.json"


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def resolve_api_version(version: Optional[str]) -> str:
    """Use ``version`` unless it is empty or ``"latest"``."""
    if version and version != "latest":
        return version
    return DEFAULT_API_VERSION


def normalize_domain(shop_domain: str) -> str:
    domain = shop_domain.strip()
    for prefix in ("https://", "http://"):
        if domain.startswith(prefix):
            domain = domain[len(prefix):]
    return domain.rstrip("/")


def build_endpoint(domain: str, path: str, version: str) -> str:
    return f"{API_PROTOCOL}://{domain}/{path}/{version}/{API_ENDPOINT}"


@dataclass(frozen=True)
class ShopifySession:
    """Immutable configuration for talking to one shop's GraphQL API.

    Attributes:
        shop_domain: The shop's domain (e.g. ``'your-store.myshopify.com'``).
            A scheme prefix or trailing slash is tolerated and stripped.
        credentials: Credentials to authenticate with; only the highest
            precedence one is sent.
        api_version: API version. Empty or ``'latest'`` selects
            ``DEFAULT_API_VERSION``.
        retries: Retry budget applied to each call (default: the
            ``SHOPIFY_GQL_RETRIES`` env var or 3).
        timeout: Per-request timeout in seconds (default: the
            ``SHOPIFY_GQL_TIMEOUT`` env var or 30).
        backoff: Base backoff unit in seconds; attempt ``n`` is followed by a
            sleep of ``n * backoff`` before retrying.
        transport: Underlying HTTP transport (defaults to RequestsTransport).
        tracer: Span factory for per-call tracing (defaults to a no-op).
        bulk: Optional bulk operation collaborator.
    """

    shop_domain: str
    credentials: Credentials = field(default_factory=Credentials)
    api_version: str = DEFAULT_API_VERSION
    retries: int = field(default_factory=lambda: _env_int("SHOPIFY_GQL_RETRIES", 3))
    timeout: float = field(default_factory=lambda: _env_float("SHOPIFY_GQL_TIMEOUT", 30.0))
    backoff: float = 1.0
    transport: Transport = field(default_factory=RequestsTransport, repr=False)
    tracer: Tracer = field(default_factory=NullTracer, repr=False)
    bulk: Optional[BulkQuerier] = field(default=None, repr=False)
    graphql_url: str = field(init=False)
    http: Transport = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError("retries must not be negative")
        domain = normalize_domain(self.shop_domain)
        if not domain:
            raise ValueError("shop_domain is required")
        version = resolve_api_version(self.api_version)
        if self.credentials.active_scheme() == STOREFRONT:
            path = STOREFRONT_API_PATH
        else:
            path = ADMIN_API_PATH
        object.__setattr__(self, "shop_domain", domain)
        object.__setattr__(self, "api_version", version)
        object.__setattr__(self, "graphql_url", build_endpoint(domain, path, version))
        object.__setattr__(self, "http", AuthenticatingTransport(self.transport, self.credentials))

    @classmethod
    def from_env(cls, **overrides: Any) -> "ShopifySession":
        """Build a session from ``SHOPIFY_*`` environment variables.

        Reads ``SHOPIFY_SHOP_DOMAIN``, ``SHOPIFY_ACCESS_TOKEN``,
        ``SHOPIFY_API_KEY``, ``SHOPIFY_API_PASSWORD``,
        ``SHOPIFY_STOREFRONT_TOKEN`` and ``SHOPIFY_API_VERSION``. Keyword
        arguments override any of the dataclass fields.
        """
        kwargs: dict[str, Any] = {
            "shop_domain": os.getenv("SHOPIFY_SHOP_DOMAIN", ""),
            "credentials": Credentials(
                access_token=os.getenv("SHOPIFY_ACCESS_TOKEN", ""),
                api_key=os.getenv("SHOPIFY_API_KEY", ""),
                password=os.getenv("SHOPIFY_API_PASSWORD", ""),
                storefront_token=os.getenv("SHOPIFY_STOREFRONT_TOKEN", ""),
            ),
            "api_version": os.getenv("SHOPIFY_API_VERSION", ""),
        }
        kwargs.update(overrides)
        return cls(**kwargs)
