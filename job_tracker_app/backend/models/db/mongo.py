"""
MongoDB document store.

Collections:
- applications: owned by user_id
- interviews: owned through application_id
- recruiters: owned by user_id
- reminders: owned by user_id, optionally linked by application_id

Every driver error is re-raised as StoreError; nothing is retried here.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from .database import COLLECTIONS, DocumentStore, FieldFilter
from ...errors import StoreError

logger = logging.getLogger(__name__)

_MONGO_OPERATORS = {
    "in": "$in",
    ">": "$gt",
    ">=": "$gte",
    "<": "$lt",
    "<=": "$lte",
}


def _object_id(doc_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        return None


def build_mongo_filter(filters: Sequence[FieldFilter]) -> Dict[str, Any]:
    """Translate FieldFilters into a Mongo filter document."""
    query: Dict[str, Any] = {}
    for f in filters:
        if f.op == "==":
            query[f.field] = f.value
        else:
            clause = query.setdefault(f.field, {})
            clause[_MONGO_OPERATORS[f.op]] = list(f.value) if f.op == "in" else f.value
    return query


class MongoDocumentStore(DocumentStore):

    def __init__(self, db: Database, in_filter_limit: Optional[int] = None):
        self.db = db
        self.in_filter_limit = in_filter_limit

    @classmethod
    def from_settings(cls, settings) -> "MongoDocumentStore":
        # tz_aware so stored timestamps come back as UTC-aware datetimes
        client = MongoClient(settings.mongodb_uri, tz_aware=True)
        return cls(client[settings.mongodb_db], in_filter_limit=settings.store_in_filter_limit)

    def init_indexes(self) -> None:
        """Create indexes for the owner-scoped and parent-scoped queries."""
        try:
            self.db[COLLECTIONS["applications"]].create_index([("user_id", ASCENDING), ("updated_at", DESCENDING)])
            self.db[COLLECTIONS["interviews"]].create_index([("application_id", ASCENDING), ("interview_date", DESCENDING)])
            self.db[COLLECTIONS["recruiters"]].create_index("user_id")
            self.db[COLLECTIONS["reminders"]].create_index([("user_id", ASCENDING), ("due_date", ASCENDING)])
        except PyMongoError as e:
            raise StoreError("Failed to create MongoDB indexes") from e
        logger.info("MongoDB indexes created successfully")

    def insert(self, collection: str, data: Dict[str, Any]) -> str:
        try:
            result = self.db[collection].insert_one(dict(data))
        except PyMongoError as e:
            raise StoreError(f"Insert into {collection} failed") from e
        return str(result.inserted_id)

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        oid = _object_id(doc_id)
        if oid is None:
            return None
        try:
            return self.db[collection].find_one({"_id": oid})
        except PyMongoError as e:
            raise StoreError(f"Read from {collection} failed") from e

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> bool:
        oid = _object_id(doc_id)
        if oid is None:
            return False
        try:
            result = self.db[collection].update_one({"_id": oid}, {"$set": fields})
        except PyMongoError as e:
            raise StoreError(f"Update in {collection} failed") from e
        return result.matched_count > 0

    def delete(self, collection: str, doc_id: str) -> None:
        oid = _object_id(doc_id)
        if oid is None:
            return
        try:
            self.db[collection].delete_one({"_id": oid})
        except PyMongoError as e:
            raise StoreError(f"Delete from {collection} failed") from e

    def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        self._check_filters(filters)
        query = build_mongo_filter(filters)
        try:
            cursor = self.db[collection].find(query)
            if order_by:
                cursor = cursor.sort(order_by, DESCENDING if descending else ASCENDING)
            return list(cursor)
        except PyMongoError as e:
            raise StoreError(f"Query on {collection} failed") from e

    def ping(self) -> bool:
        """Test if MongoDB is reachable."""
        try:
            self.db.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("MongoDB connection failed: %s", e)
            return False
