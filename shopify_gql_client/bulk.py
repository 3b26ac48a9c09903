"""Bulk operation collaborator."""
from __future__ import annotations

from typing import Any, Protocol


class BulkQuerier(Protocol):
    """Runs a query as an asynchronous bulk operation.

    Implementations submit the job, poll it to completion, download the result
    file and append each decoded record to ``out``. Any failure is raised.
    """

    def bulk_query(self, query: str, out: list[Any]) -> None:
        ...
