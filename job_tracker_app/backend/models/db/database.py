"""
Document store client.

The storage layer never talks to a driver directly; it is handed a
``DocumentStore`` so the backing store can be swapped:

- ``InMemoryDocumentStore``: process-local, used for development and tests
- ``MongoDocumentStore`` (models/db/mongo.py): durable MongoDB backend

Documents come back as plain dicts carrying the store-assigned ``_id``.
Stores have no joins; the only cross-document primitive is the ``in`` filter,
and a store may cap how many values one ``in`` filter accepts.
"""
import copy
import logging
import threading
import uuid
from functools import lru_cache
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from ...config.settings import get_settings
from ...errors import StoreError

logger = logging.getLogger(__name__)


# Collection name constants (avoid typos)
COLLECTIONS = {
    "applications": "applications",
    "interviews": "interviews",
    "recruiters": "recruiters",
    "reminders": "reminders",
}

FILTER_OPERATORS = ("==", "in", ">", ">=", "<", "<=")


class FieldFilter(NamedTuple):
    field: str
    op: str
    value: Any


class DocumentStore:
    """Interface every backing store implements."""

    # Max values in one "in" filter; None means unbounded
    in_filter_limit: Optional[int] = None

    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        """Persist a new document and return its store-assigned id."""
        raise NotImplementedError

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        """Set ``fields`` on an existing document. False if there is no such document."""
        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document. Removing a missing document is not an error."""
        raise NotImplementedError

    def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def ping(self) -> bool:
        return True

    def _check_filters(self, filters: Sequence[FieldFilter]) -> None:
        for f in filters:
            if f.op not in FILTER_OPERATORS:
                raise StoreError(f"Unsupported filter operator: {f.op}")
            if f.op == "in":
                if not f.value:
                    raise StoreError(f"'in' filter on {f.field} needs at least one value")
                if self.in_filter_limit is not None and len(f.value) > self.in_filter_limit:
                    raise StoreError(
                        f"'in' filter on {f.field} accepts at most {self.in_filter_limit} values, "
                        f"got {len(f.value)}"
                    )


def _matches(doc: Dict[str, Any], f: FieldFilter) -> bool:
    if f.field not in doc:
        return False
    value = doc[f.field]
    if f.op == "==":
        return value == f.value
    if f.op == "in":
        return value in f.value
    if value is None:
        return False
    if f.op == ">":
        return value > f.value
    if f.op == ">=":
        return value >= f.value
    if f.op == "<":
        return value < f.value
    return value <= f.value


class InMemoryDocumentStore(DocumentStore):
    """
    Thread-safe in-process store with the same query surface as the real one.

    Every query is recorded in ``query_log`` as ``(collection, filters)`` so
    callers can see which collections a code path actually touched.
    """

    def __init__(self, in_filter_limit: Optional[int] = 10):
        self.in_filter_limit = in_filter_limit
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()
        self.query_log: List[tuple] = []

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        with self._lock:
            self._collection(collection)[doc_id] = copy.deepcopy(data)
        return doc_id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            data = self._collection(collection).get(doc_id)
            if data is None:
                return None
            return {"_id": doc_id, **copy.deepcopy(data)}

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        with self._lock:
            data = self._collection(collection).get(doc_id)
            if data is None:
                return False
            data.update(copy.deepcopy(fields))
            return True

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._collection(collection).pop(doc_id, None)

    def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        self._check_filters(filters)
        with self._lock:
            self.query_log.append((collection, tuple(filters)))
            docs = [
                {"_id": doc_id, **copy.deepcopy(data)}
                for doc_id, data in self._collection(collection).items()
                if all(_matches(data, f) for f in filters)
            ]
        if order_by:
            # Like the real store, documents without the order field are left out
            docs = [d for d in docs if d.get(order_by) is not None]
            docs.sort(key=lambda d: d[order_by], reverse=descending)
        return docs

    def queries_against(self, collection: str) -> int:
        with self._lock:
            return sum(1 for name, _ in self.query_log if name == collection)

    def clear(self) -> None:
        with self._lock:
            self._collections.clear()
            self.query_log.clear()


@lru_cache()
def get_document_store() -> DocumentStore:
    """
    Get the configured document store (singleton).

    MongoDB is imported lazily so the in-memory backend works without a
    reachable server.
    """
    settings = get_settings()
    if settings.store_backend == "mongodb":
        from .mongo import MongoDocumentStore

        logger.info("Using MongoDB document store at database '%s'", settings.mongodb_db)
        store = MongoDocumentStore.from_settings(settings)
        store.init_indexes()
        return store

    logger.info("Using in-memory document store")
    return InMemoryDocumentStore(in_filter_limit=settings.store_in_filter_limit)
