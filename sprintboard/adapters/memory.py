"""In-memory document store for testing."""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass
from typing import Any

from ..workflow.exceptions import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


@dataclass
class StoreCall:
    operation: str
    collection: str
    payload: Any = None


class InMemoryStore:
    """DocumentStore backed by dicts. For tests and demos.

    Every call is appended to ``calls``. ``fail_next`` makes the next
    matching operation raise PersistenceError without touching any data,
    which is how tests stand in for a rejected write.
    """

    def __init__(self, latency: float = 0.0):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._next_id: dict[str, int] = {}
        self._failures: list[tuple[str | None, str | None, str]] = []
        self.latency = latency
        self.calls: list[StoreCall] = []

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def fail_next(
        self,
        operation: str | None = None,
        collection: str | None = None,
        message: str = "store unavailable",
    ) -> None:
        """Queue a failure for the next call matching operation/collection."""
        self._failures.append((operation, collection, message))

    def seed(self, collection: str, doc_id: str, record: dict[str, Any]) -> None:
        """Insert a document directly, bypassing the call log."""
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(record)

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        doc = self._collections.get(collection, {}).get(doc_id)
        if doc is None:
            return None
        return {**copy.deepcopy(doc), "id": doc_id}

    def all(self, collection: str) -> list[dict[str, Any]]:
        return [
            {**copy.deepcopy(doc), "id": doc_id}
            for doc_id, doc in self._collections.get(collection, {}).items()
        ]

    def writes(self) -> list[StoreCall]:
        return [c for c in self.calls if c.operation != "query"]

    # ------------------------------------------------------------------
    # DocumentStore
    # ------------------------------------------------------------------

    async def _enter(self, operation: str, collection: str, payload: Any) -> None:
        self.calls.append(StoreCall(operation, collection, copy.deepcopy(payload)))
        if self.latency:
            await asyncio.sleep(self.latency)
        for i, (op, coll, message) in enumerate(self._failures):
            if (op is None or op == operation) and (coll is None or coll == collection):
                del self._failures[i]
                logger.debug("Injected failure for %s on %s", operation, collection)
                raise PersistenceError(operation, collection, message)

    async def query_by_field(
        self, collection: str, field: str, value: Any
    ) -> list[dict[str, Any]]:
        await self._enter("query", collection, {field: value})
        return [
            {**copy.deepcopy(doc), "id": doc_id}
            for doc_id, doc in self._collections.get(collection, {}).items()
            if doc.get(field) == value
        ]

    async def add(self, collection: str, record: dict[str, Any]) -> str:
        await self._enter("add", collection, record)
        docs = self._collections.setdefault(collection, {})
        n = self._next_id.get(collection, 1)
        while f"{collection[:1]}-{n}" in docs:
            n += 1
        self._next_id[collection] = n + 1
        doc_id = f"{collection[:1]}-{n}"
        docs[doc_id] = copy.deepcopy({k: v for k, v in record.items() if k != "id"})
        return doc_id

    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        await self._enter("update", collection, {"id": doc_id, "changes": changes})
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise NotFoundError(collection, doc_id)
        docs[doc_id].update(copy.deepcopy(changes))

    async def batch_update(
        self, collection: str, updates: list[tuple[str, dict[str, Any]]]
    ) -> None:
        await self._enter("batch_update", collection, list(updates))
        docs = self._collections.get(collection, {})
        missing = [doc_id for doc_id, _ in updates if doc_id not in docs]
        if missing:
            # All or nothing: reject before applying any update.
            raise NotFoundError(collection, missing[0])
        for doc_id, changes in updates:
            docs[doc_id].update(copy.deepcopy(changes))

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._enter("delete", collection, {"id": doc_id})
        self._collections.get(collection, {}).pop(doc_id, None)
