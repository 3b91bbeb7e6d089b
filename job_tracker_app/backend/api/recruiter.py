from typing import Any, List
from fastapi import APIRouter, Body, Depends, Response, status

from .. import schemas
from ..schemas import EntityKind, validate_insert, validate_partial_update
from ..services.access_policy import load_owned
from ..services.application_tracker import TrackerStorage, get_storage
from .auth import get_current_user_id

router = APIRouter()


@router.get("", response_model=List[schemas.Recruiter])
def read_recruiters(
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    return storage.list_recruiters(user_id)


@router.post("", response_model=schemas.Recruiter, status_code=status.HTTP_201_CREATED)
def create_recruiter(
    payload: Any = Body(...),
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    recruiter = validate_insert(EntityKind.RECRUITER, payload)
    return storage.create_recruiter(user_id, recruiter)


@router.put("/{recruiter_id}", response_model=schemas.Recruiter)
def update_recruiter(
    recruiter_id: str,
    payload: Any = Body(...),
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    load_owned(storage, user_id, EntityKind.RECRUITER, recruiter_id)
    patch = validate_partial_update(EntityKind.RECRUITER, payload)
    return storage.update_recruiter(recruiter_id, patch)


@router.delete("/{recruiter_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_recruiter(
    recruiter_id: str,
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    load_owned(storage, user_id, EntityKind.RECRUITER, recruiter_id)
    storage.delete_recruiter(recruiter_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
