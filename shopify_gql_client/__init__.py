"""Public API exports."""
from .auth import AuthenticatingTransport, Credentials
from .client import ShopifyClient, execute, mutate, query
from .errors import (
    CostExceededError,
    DecodeError,
    HTTPStatusError,
    OperationCancelled,
    ProtocolError,
    ShopifyGQLError,
    ThrottledError,
    TransportError,
    UnexpectedStatusError,
)
from .paginate import Page, fetch_all, merge_connection, walk_pages
from .session import ShopifySession

__all__ = [
    "AuthenticatingTransport",
    "CostExceededError",
    "Credentials",
    "DecodeError",
    "HTTPStatusError",
    "OperationCancelled",
    "Page",
    "ProtocolError",
    "ShopifyClient",
    "ShopifyGQLError",
    "ShopifySession",
    "ThrottledError",
    "TransportError",
    "UnexpectedStatusError",
    "execute",
    "fetch_all",
    "merge_connection",
    "mutate",
    "query",
    "walk_pages",
]
