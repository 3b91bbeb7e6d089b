"""
Ownership policy shared by every route and by the automation tools.

Applications, recruiters and reminders are owned directly through their
``user_id``. An interview has no owner field; its owner is whoever owns its
parent application, resolved at check time. An interview whose parent is gone
has no owner and is accessible to nobody.
"""
import logging
from typing import Callable, Dict, Optional

from ..errors import Forbidden, NotFound
from ..schemas import EntityKind
from .application_tracker import TrackerStorage

logger = logging.getLogger(__name__)

OwnerResolver = Callable[[TrackerStorage, object], Optional[str]]


def _direct_owner(storage: TrackerStorage, entity) -> Optional[str]:
    return entity.user_id


def _parent_application_owner(storage: TrackerStorage, entity) -> Optional[str]:
    parent = storage.get_application(entity.application_id)
    if parent is None:
        return None
    return parent.user_id


OWNER_RESOLVERS: Dict[EntityKind, OwnerResolver] = {
    EntityKind.APPLICATION: _direct_owner,
    EntityKind.INTERVIEW: _parent_application_owner,
    EntityKind.RECRUITER: _direct_owner,
    EntityKind.REMINDER: _direct_owner,
}


def resolve_owner(storage: TrackerStorage, entity, kind: EntityKind) -> Optional[str]:
    return OWNER_RESOLVERS[kind](storage, entity)


def can_access(storage: TrackerStorage, caller_id: str, entity, kind: EntityKind) -> bool:
    """True if ``caller_id`` owns ``entity``, directly or through its parent."""
    if not caller_id or entity is None:
        return False
    return resolve_owner(storage, entity, kind) == caller_id


def load_owned(storage: TrackerStorage, caller_id: str, kind: EntityKind, entity_id: str):
    """
    Fetch a record and check the caller may touch it.

    Raises:
        NotFound: no record with this id
        Forbidden: the record belongs to someone else
    """
    entity = storage.get_entity(kind, entity_id)
    if entity is None:
        raise NotFound(f"{kind.value.capitalize()} {entity_id} not found")
    if not can_access(storage, caller_id, entity, kind):
        logger.warning("User %s denied access to %s %s", caller_id, kind.value, entity_id)
        raise Forbidden(f"{kind.value.capitalize()} {entity_id} does not belong to the current user")
    return entity


def require_owned_application(storage: TrackerStorage, caller_id: str, application_id: str):
    """
    Check a referenced parent application before writing a child record.

    A missing parent is reported as Forbidden, like a foreign one, so callers
    cannot discover which application ids exist.
    """
    application = storage.get_application(application_id)
    if application is None or not can_access(storage, caller_id, application, EntityKind.APPLICATION):
        logger.warning("User %s referenced application %s they do not own", caller_id, application_id)
        raise Forbidden(f"Application {application_id} does not belong to the current user")
    return application
