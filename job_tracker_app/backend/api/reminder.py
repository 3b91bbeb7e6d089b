from typing import Any, List
from fastapi import APIRouter, Body, Depends, Response, status

from .. import schemas
from ..schemas import EntityKind, validate_insert, validate_partial_update
from ..services.access_policy import load_owned, require_owned_application
from ..services.application_tracker import TrackerStorage, get_storage
from .auth import get_current_user_id

router = APIRouter()


@router.get("", response_model=List[schemas.Reminder])
def read_reminders(
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    """
    Retrieve the current user's reminders, earliest due first.
    """
    return storage.list_reminders(user_id)


@router.post("", response_model=schemas.Reminder, status_code=status.HTTP_201_CREATED)
def create_reminder(
    payload: Any = Body(...),
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    """
    Store a reminder, optionally linked to one of the user's applications.
    Reminders are only stored; nothing fires them.
    """
    reminder = validate_insert(EntityKind.REMINDER, payload)
    if reminder.application_id:
        require_owned_application(storage, user_id, reminder.application_id)
    return storage.create_reminder(user_id, reminder)


@router.put("/{reminder_id}", response_model=schemas.Reminder)
def update_reminder(
    reminder_id: str,
    payload: Any = Body(...),
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    load_owned(storage, user_id, EntityKind.REMINDER, reminder_id)
    patch = validate_partial_update(EntityKind.REMINDER, payload)
    if patch.get("application_id"):
        require_owned_application(storage, user_id, patch["application_id"])
    return storage.update_reminder(reminder_id, patch)


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_reminder(
    reminder_id: str,
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    load_owned(storage, user_id, EntityKind.REMINDER, reminder_id)
    storage.delete_reminder(reminder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
