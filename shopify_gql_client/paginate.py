"""Pagination helpers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence

from .client import execute
from .session import ShopifySession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Page:
    """One page of a connection.

    ``edges`` are the raw edge dicts, each expected to carry a ``cursor``.
    ``end_cursor`` is ``pageInfo.endCursor`` when the query asked for it.
    """

    edges: Sequence[Any]
    has_next_page: bool
    end_cursor: Optional[str] = None


FetchPage = Callable[[Optional[str]], Page]


def _next_cursor(page: Page) -> Optional[str]:
    last = page.edges[-1]
    if isinstance(last, Mapping) and last.get("cursor"):
        return last["cursor"]
    return page.end_cursor


def walk_pages(fetch_page: FetchPage, cursor: Optional[str] = None) -> list[Any]:
    """Call ``fetch_page`` until the connection is exhausted and return every
    edge in server order.

    The first call gets ``cursor`` (None by default), later calls the cursor
    of the previous page's last edge. The walk stops when a page reports no
    next page or comes back empty. An exception from ``fetch_page`` ends the
    walk and propagates; edges gathered so far are dropped.

    Raises:
        ValueError: If a page reports a next page but neither its last edge
            nor ``end_cursor`` gives a cursor to continue from.
    """
    edges: list[Any] = []
    pages = 0
    while True:
        page = fetch_page(cursor)
        pages += 1
        edges.extend(page.edges)
        if not page.has_next_page:
            break
        if not page.edges:
            logger.warning("empty page %d reported hasNextPage, stopping", pages)
            break
        cursor = _next_cursor(page)
        if not cursor:
            raise ValueError("page has no cursor to continue from")
    logger.debug("collected %d edges in %d pages", len(edges), pages)
    return edges


def _connection_at(data: Any, connection_path: Sequence[str]) -> Mapping[str, Any]:
    conn: Any = data
    for key in connection_path:
        if not isinstance(conn, dict) or key not in conn:
            raise ValueError(f"connection_path missing key '{key}'")
        conn = conn[key]
    if not isinstance(conn, dict):
        raise ValueError("connection_path does not point at a connection")
    return conn


def connection_page(conn: Mapping[str, Any]) -> Page:
    """Build a :class:`Page` from a connection dict with ``edges`` or ``nodes``.

    ``nodes`` connections are wrapped as ``{"node": ...}`` edges so callers see
    one shape; their cursor comes from ``pageInfo.endCursor``.
    """
    page_info = conn.get("pageInfo") or {}
    if "edges" in conn:
        edges = list(conn["edges"] or [])
    elif "nodes" in conn:
        edges = [{"node": node} for node in conn["nodes"] or []]
    else:
        raise ValueError("Connection missing 'nodes' or 'edges'")
    return Page(edges, bool(page_info.get("hasNextPage")), page_info.get("endCursor"))


def fetch_all(
    session: ShopifySession,
    query: str,
    connection_path: list[str],
    variables: Mapping[str, Any] | None = None,
    page_size: int = 250,
    **execute_kwargs: Any,
) -> list[Any]:
    """
    Return every node of a cursor-based GraphQL connection, requesting pages
    until `pageInfo.hasNextPage` is false.

    The supplied `query` must accept `$first:Int!` and `$after:String` variables
    for pagination. `connection_path` is a list of keys from the `data` payload
    to the desired connection object (e.g. `["products"]`).

    Args:
        session: Configured `ShopifySession`.
        query: GraphQL document containing a connection field.
        connection_path: Keys navigating from `data` to the connection.
        variables: Initial query variables (updated with pagination params). May be None.
        page_size: Items per page (default 250, Shopify max). A positive
            `first` in `variables` takes precedence.
        **execute_kwargs: Passed to `execute` for every page (retries,
            cancel, deadline, ...).

    Returns:
        list: The nodes of all pages, in order.

    Raises:
        ValueError: If `connection_path` is invalid, the connection lacks
            `nodes`/`edges`, or a `nodes` page reports more pages without
            `pageInfo.endCursor`.
        ShopifyGQLError: If any page fails; no partial list is returned.

    Example:
        >>> query = '''
        ...   query($first:Int!, $after:String) {
        ...     products(first:$first, after:$after) {
        ...       pageInfo { hasNextPage endCursor }
        ...       edges { cursor node { id title } }
        ...     }
        ...   }
        ... '''
        >>> for product in fetch_all(session, query, ["products"]):
        ...     print(product["title"])
    """

    vars_copy: dict[str, Any] = dict(variables or {})
    first = vars_copy.get("first")
    vars_copy["first"] = first if (isinstance(first, int) and first > 0) else page_size

    def fetch_page(cursor: Optional[str]) -> Page:
        page_vars = dict(vars_copy)
        if cursor:
            page_vars["after"] = cursor
        else:
            page_vars.pop("after", None)
        data = execute(session, query, page_vars, **execute_kwargs)
        return connection_page(_connection_at(data, connection_path))

    return [edge["node"] for edge in walk_pages(fetch_page)]


def merge_connection(
    target: dict[str, Any],
    fetch_page: FetchPage,
) -> dict[str, Any]:
    """Complete a connection that arrived as the first page of a larger object.

    ``target`` is a connection dict (``edges`` plus ``pageInfo``), such as a
    product's ``variants``. While it reports more pages, ``fetch_page`` is
    called with the last edge's cursor and the returned edges are appended.
    ``target`` is updated in place and returned.
    """
    if "edges" not in target:
        raise ValueError("merge_connection needs an 'edges' connection")
    first = connection_page(target)
    if not first.has_next_page or not first.edges:
        return target
    cursor = _next_cursor(first)
    if not cursor:
        raise ValueError("page has no cursor to continue from")
    rest = walk_pages(fetch_page, cursor=cursor)
    target["edges"] = list(target.get("edges") or []) + rest
    target["pageInfo"] = dict(target.get("pageInfo") or {}, hasNextPage=False)
    return target
