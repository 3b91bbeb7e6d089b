"""
Tracker storage - CRUD over applications, interviews, recruiters and reminders.

Owner-scoped reads filter by ``user_id``. Single-record reads do not: the
route layer compares the fetched record's owner with the caller (see
services/access_policy.py).

Interviews carry no owner of their own. Listing a user's interviews is a
two-phase plan because the store has no joins:

1. resolve the ids of the applications the user owns
2. fetch interviews whose ``application_id`` is in that set, one ``in``
   query per chunk of ``batch_size`` ids, then merge and re-sort
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .. import schemas
from ..config.settings import get_settings
from ..errors import NotFound, StoreError
from ..models.db.database import COLLECTIONS, DocumentStore, FieldFilter, get_document_store
from ..schemas import EntityKind

logger = logging.getLogger(__name__)

COLLECTION_FOR_KIND = {
    EntityKind.APPLICATION: COLLECTIONS["applications"],
    EntityKind.INTERVIEW: COLLECTIONS["interviews"],
    EntityKind.RECRUITER: COLLECTIONS["recruiters"],
    EntityKind.REMINDER: COLLECTIONS["reminders"],
}

# Never changed through update(), whatever the caller passes
IMMUTABLE_FIELDS = {
    kind: schemas.SERVER_OWNED_FIELDS + schemas.OWNERSHIP_FIELDS.get(kind, ())
    for kind in EntityKind
}


def chunked(values: List[Any], size: int) -> List[List[Any]]:
    return [values[i:i + size] for i in range(0, len(values), size)]


class TrackerStorage:
    """Storage for the four tracker entity kinds over an injected DocumentStore."""

    def __init__(self, store: DocumentStore, batch_size: int = 10, max_workers: int = 4):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.store = store
        self.batch_size = batch_size
        self.max_workers = max_workers

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    def _to_entity(self, kind: EntityKind, doc: Dict[str, Any]):
        """Merge the store-assigned id into the record and validate its shape."""
        record = {key: value for key, value in doc.items() if key != "_id"}
        record["id"] = str(doc["_id"])
        try:
            return schemas.ENTITY_SCHEMAS[kind].entity.model_validate(record)
        except PydanticValidationError as e:
            logger.error("Stored %s %s does not match its schema: %s", kind.value, record["id"], e)
            raise StoreError(f"Stored {kind.value} {record['id']} is malformed") from e

    def _list_owned(self, kind: EntityKind, user_id: str, order_by: Optional[str] = None,
                    descending: bool = False) -> list:
        docs = self.store.query(
            COLLECTION_FOR_KIND[kind],
            [FieldFilter("user_id", "==", user_id)],
            order_by=order_by,
            descending=descending,
        )
        return [self._to_entity(kind, doc) for doc in docs]

    def _get(self, kind: EntityKind, entity_id: str):
        doc = self.store.get(COLLECTION_FOR_KIND[kind], entity_id)
        if doc is None:
            return None
        return self._to_entity(kind, doc)

    def _create(self, kind: EntityKind, data: Dict[str, Any]):
        entity_id = self.store.insert(COLLECTION_FOR_KIND[kind], data)
        logger.info("Created %s %s", kind.value, entity_id)
        return self._to_entity(kind, {"_id": entity_id, **data})

    def _update(self, kind: EntityKind, entity_id: str, patch: Dict[str, Any]):
        fields = dict(patch)
        for name in IMMUTABLE_FIELDS[kind]:
            if name in fields:
                logger.warning("Ignoring attempt to change %s on %s %s", name, kind.value, entity_id)
                fields.pop(name)

        if kind == EntityKind.APPLICATION:
            current = self._get(kind, entity_id)
            if current is None:
                raise NotFound(f"{kind.value.capitalize()} {entity_id} not found")
            fields["updated_at"] = schemas.next_timestamp(current.updated_at)

        if fields:
            found = self.store.update(COLLECTION_FOR_KIND[kind], entity_id, fields)
        else:
            found = self.store.get(COLLECTION_FOR_KIND[kind], entity_id) is not None
        if not found:
            raise NotFound(f"{kind.value.capitalize()} {entity_id} not found")

        updated = self._get(kind, entity_id)
        if updated is None:
            raise NotFound(f"{kind.value.capitalize()} {entity_id} not found")
        logger.info("Updated %s %s (%s)", kind.value, entity_id, ", ".join(sorted(fields)) or "no changes")
        return updated

    def _delete(self, kind: EntityKind, entity_id: str) -> None:
        self.store.delete(COLLECTION_FOR_KIND[kind], entity_id)
        logger.info("Deleted %s %s", kind.value, entity_id)

    def get_entity(self, kind: EntityKind, entity_id: str):
        return self._get(kind, entity_id)

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def list_applications(self, user_id: str) -> List[schemas.Application]:
        return self._list_owned(EntityKind.APPLICATION, user_id, order_by="updated_at", descending=True)

    def get_application(self, application_id: str) -> Optional[schemas.Application]:
        return self._get(EntityKind.APPLICATION, application_id)

    def create_application(self, user_id: str, application: schemas.ApplicationCreate) -> schemas.Application:
        now = schemas.utcnow()
        data = application.model_dump()
        if data.get("application_date") is None:
            data["application_date"] = now
        if not data.get("status"):
            data["status"] = schemas.ApplicationStatus.SAVED.value
        data.update(user_id=user_id, created_at=now, updated_at=now)
        return self._create(EntityKind.APPLICATION, data)

    def update_application(self, application_id: str, patch: Dict[str, Any]) -> schemas.Application:
        return self._update(EntityKind.APPLICATION, application_id, patch)

    def delete_application(self, application_id: str) -> None:
        # Child interviews and reminders are left in place
        self._delete(EntityKind.APPLICATION, application_id)

    # ------------------------------------------------------------------
    # Interviews
    # ------------------------------------------------------------------

    def list_interviews(
        self,
        user_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[schemas.Interview]:
        """
        All interviews under applications owned by ``user_id``, newest first.

        Args:
            user_id: Owner whose applications scope the result
            start_date: Only interviews on or after this time
            end_date: Only interviews on or before this time
        """
        application_ids = [app.id for app in self.list_applications(user_id)]
        if not application_ids:
            return []

        date_filters = []
        if start_date is not None:
            date_filters.append(FieldFilter("interview_date", ">=", schemas.as_utc(start_date)))
        if end_date is not None:
            date_filters.append(FieldFilter("interview_date", "<=", schemas.as_utc(end_date)))

        chunks = chunked(application_ids, self.batch_size)
        logger.debug(
            "Listing interviews for %s: %d applications in %d chunk(s)",
            user_id, len(application_ids), len(chunks),
        )

        def fetch(chunk: List[str]) -> List[Dict[str, Any]]:
            return self.store.query(
                COLLECTION_FOR_KIND[EntityKind.INTERVIEW],
                [FieldFilter("application_id", "in", chunk), *date_filters],
                order_by="interview_date",
                descending=True,
            )

        if len(chunks) == 1:
            results = [fetch(chunks[0])]
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(chunks))) as pool:
                results = list(pool.map(fetch, chunks))

        interviews = [self._to_entity(EntityKind.INTERVIEW, doc) for part in results for doc in part]
        # Each chunk is sorted on its own; the merged list is not
        interviews.sort(key=lambda interview: interview.interview_date, reverse=True)
        return interviews

    def get_interview(self, interview_id: str) -> Optional[schemas.Interview]:
        return self._get(EntityKind.INTERVIEW, interview_id)

    def create_interview(self, interview: schemas.InterviewCreate) -> schemas.Interview:
        """Create an interview. The caller has already checked the parent application."""
        return self._create(EntityKind.INTERVIEW, interview.model_dump())

    def update_interview(self, interview_id: str, patch: Dict[str, Any]) -> schemas.Interview:
        return self._update(EntityKind.INTERVIEW, interview_id, patch)

    def delete_interview(self, interview_id: str) -> None:
        self._delete(EntityKind.INTERVIEW, interview_id)

    # ------------------------------------------------------------------
    # Recruiters
    # ------------------------------------------------------------------

    def list_recruiters(self, user_id: str) -> List[schemas.Recruiter]:
        return self._list_owned(EntityKind.RECRUITER, user_id)

    def get_recruiter(self, recruiter_id: str) -> Optional[schemas.Recruiter]:
        return self._get(EntityKind.RECRUITER, recruiter_id)

    def create_recruiter(self, user_id: str, recruiter: schemas.RecruiterCreate) -> schemas.Recruiter:
        return self._create(EntityKind.RECRUITER, {**recruiter.model_dump(), "user_id": user_id})

    def update_recruiter(self, recruiter_id: str, patch: Dict[str, Any]) -> schemas.Recruiter:
        return self._update(EntityKind.RECRUITER, recruiter_id, patch)

    def delete_recruiter(self, recruiter_id: str) -> None:
        self._delete(EntityKind.RECRUITER, recruiter_id)

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def list_reminders(self, user_id: str) -> List[schemas.Reminder]:
        return self._list_owned(EntityKind.REMINDER, user_id, order_by="due_date")

    def get_reminder(self, reminder_id: str) -> Optional[schemas.Reminder]:
        return self._get(EntityKind.REMINDER, reminder_id)

    def create_reminder(self, user_id: str, reminder: schemas.ReminderCreate) -> schemas.Reminder:
        return self._create(EntityKind.REMINDER, {**reminder.model_dump(), "user_id": user_id})

    def update_reminder(self, reminder_id: str, patch: Dict[str, Any]) -> schemas.Reminder:
        return self._update(EntityKind.REMINDER, reminder_id, patch)

    def delete_reminder(self, reminder_id: str) -> None:
        self._delete(EntityKind.REMINDER, reminder_id)


def get_storage() -> TrackerStorage:
    """FastAPI dependency - storage over the configured document store."""
    settings = get_settings()
    return TrackerStorage(
        get_document_store(),
        batch_size=settings.query_in_batch_size,
        max_workers=settings.interview_query_workers,
    )
