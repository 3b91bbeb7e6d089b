from datetime import datetime
from typing import Any, List, Optional
from fastapi import APIRouter, Body, Depends, Query, Response, status

from .. import schemas
from ..errors import ValidationError
from ..schemas import EntityKind, validate_insert, validate_partial_update
from ..services.access_policy import load_owned, require_owned_application
from ..services.application_tracker import TrackerStorage, get_storage
from .auth import get_current_user_id

router = APIRouter()


@router.get("", response_model=List[schemas.Interview])
def read_interviews(
    start: Optional[datetime] = Query(None, description="ISO-8601, inclusive lower bound on interviewDate"),
    end: Optional[datetime] = Query(None, description="ISO-8601, inclusive upper bound on interviewDate"),
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    """
    Retrieve interviews for all of the current user's applications, latest first.
    """
    if start is not None and end is not None and schemas.as_utc(start) > schemas.as_utc(end):
        raise ValidationError("start", "start must not be after end")
    return storage.list_interviews(user_id, start_date=start, end_date=end)


@router.post("", response_model=schemas.Interview, status_code=status.HTTP_201_CREATED)
def create_interview(
    payload: Any = Body(...),
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    """
    Schedule an interview under one of the current user's applications.
    """
    interview = validate_insert(EntityKind.INTERVIEW, payload)
    require_owned_application(storage, user_id, interview.application_id)
    return storage.create_interview(interview)


@router.put("/{interview_id}", response_model=schemas.Interview)
def update_interview(
    interview_id: str,
    payload: Any = Body(...),
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    load_owned(storage, user_id, EntityKind.INTERVIEW, interview_id)
    patch = validate_partial_update(EntityKind.INTERVIEW, payload)
    return storage.update_interview(interview_id, patch)


@router.delete("/{interview_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_interview(
    interview_id: str,
    storage: TrackerStorage = Depends(get_storage),
    user_id: str = Depends(get_current_user_id),
):
    load_owned(storage, user_id, EntityKind.INTERVIEW, interview_id)
    storage.delete_interview(interview_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
