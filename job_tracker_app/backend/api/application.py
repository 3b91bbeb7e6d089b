from typing import Any, List
from fastapi import APIRouter, Body, Depends, Response, status

from .. import schemas
from ..schemas import EntityKind, validate_insert, validate_partial_update
from ..services.access_policy import load_owned
from ..services.application_tracker import TrackerStorage, get_storage
from .auth import get_current_user_id

router = APIRouter()


@router.get("", response_model=List[schemas.Application])
def read_applications(
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    """
    Retrieve all job applications for the current user, most recently updated first.
    """
    return storage.list_applications(user_id)


@router.get("/{application_id}", response_model=schemas.Application)
def read_application(
    application_id: str,
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    """
    Retrieve a specific job application by its ID.
    """
    return load_owned(storage, user_id, EntityKind.APPLICATION, application_id)


@router.post("", response_model=schemas.Application, status_code=status.HTTP_201_CREATED)
def create_application(
    payload: Any = Body(...),
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    """
    Create a new job application entry for the current user.
    """
    application = validate_insert(EntityKind.APPLICATION, payload)
    return storage.create_application(user_id, application)


@router.put("/{application_id}", response_model=schemas.Application)
def update_application(
    application_id: str,
    payload: Any = Body(...),
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    """
    Update a job application's details.
    """
    load_owned(storage, user_id, EntityKind.APPLICATION, application_id)
    patch = validate_partial_update(EntityKind.APPLICATION, payload)
    return storage.update_application(application_id, patch)


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_application(
    application_id: str,
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    """
    Delete a job application. Its interviews and reminders are kept.
    """
    load_owned(storage, user_id, EntityKind.APPLICATION, application_id)
    storage.delete_application(application_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
