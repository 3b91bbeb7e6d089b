from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Any, Dict, NamedTuple, Optional, Type

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    HttpUrl,
    StrictBool,
    StringConstraints,
    TypeAdapter,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel, to_snake

from .errors import ValidationError


# Timestamp helpers
def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and drop precision below a millisecond.

    Mongo keeps milliseconds only, so anything finer would not survive a
    round trip through the store.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def utcnow() -> datetime:
    return as_utc(datetime.now(timezone.utc))


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """Current time, bumped past ``previous`` so ``updated_at`` always moves forward."""
    now = utcnow()
    if previous is not None:
        previous = as_utc(previous)
        if now <= previous:
            now = previous + timedelta(milliseconds=1)
    return now


_http_url = TypeAdapter(HttpUrl)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _check_url(value: Optional[str]) -> Optional[str]:
    # Validate with HttpUrl but keep the caller's spelling of the URL
    if value is not None:
        try:
            _http_url.validate_python(value)
        except PydanticValidationError:
            raise ValueError("must be a valid http(s) URL")
    return value


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
OptionalUrl = Annotated[Optional[str], BeforeValidator(_blank_to_none), AfterValidator(_check_url)]
OptionalEmail = Annotated[Optional[EmailStr], BeforeValidator(_blank_to_none)]


class EntityKind(str, Enum):
    APPLICATION = "application"
    INTERVIEW = "interview"
    RECRUITER = "recruiter"
    REMINDER = "reminder"


class ApplicationStatus(str, Enum):
    SAVED = "Saved"
    APPLIED = "Applied"
    SHORTLISTED = "Shortlisted"
    INTERVIEW = "Interview"
    OFFER = "Offer"
    REJECTED = "Rejected"


class TrackerModel(BaseModel):
    """Base for every record: camelCase on the wire, snake_case in Python and in the store."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
        from_attributes=True,
        validate_default=True,
        extra="ignore",
    )


# Application Schemas
class ApplicationBase(TrackerModel):
    company: NonEmptyStr
    title: NonEmptyStr
    description: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None  # Full-time, Intern, Contract
    salary: Optional[str] = None
    application_date: Optional[UtcDatetime] = None
    status: ApplicationStatus = ApplicationStatus.SAVED
    url: OptionalUrl = None
    notes: Optional[str] = None


class ApplicationCreate(ApplicationBase):
    pass


class ApplicationUpdate(TrackerModel):
    company: Optional[NonEmptyStr] = None
    title: Optional[NonEmptyStr] = None
    description: Optional[str] = None
    location: Optional[str] = None
    type: Optional[str] = None
    salary: Optional[str] = None
    application_date: Optional[UtcDatetime] = None
    status: Optional[ApplicationStatus] = None
    url: OptionalUrl = None
    notes: Optional[str] = None


class Application(ApplicationBase):
    id: str
    user_id: str
    application_date: UtcDatetime
    created_at: UtcDatetime
    updated_at: UtcDatetime


# Interview Schemas
class InterviewBase(TrackerModel):
    application_id: NonEmptyStr
    round: NonEmptyStr  # Screening, Technical, Manager, Final
    interview_date: UtcDatetime
    mode: Optional[str] = None  # Online, In-person
    link: OptionalUrl = None
    notes: Optional[str] = None
    resume_url: OptionalUrl = None
    completed: StrictBool = False


class InterviewCreate(InterviewBase):
    pass


class InterviewUpdate(TrackerModel):
    round: Optional[NonEmptyStr] = None
    interview_date: Optional[UtcDatetime] = None
    mode: Optional[str] = None
    link: OptionalUrl = None
    notes: Optional[str] = None
    resume_url: OptionalUrl = None
    completed: Optional[StrictBool] = None


class Interview(InterviewBase):
    id: str


# Recruiter Schemas
class RecruiterBase(TrackerModel):
    name: NonEmptyStr
    company: Optional[str] = None
    email: OptionalEmail = None
    phone: Optional[str] = None
    linkedin: OptionalUrl = None
    notes: Optional[str] = None


class RecruiterCreate(RecruiterBase):
    pass


class RecruiterUpdate(TrackerModel):
    name: Optional[NonEmptyStr] = None
    company: Optional[str] = None
    email: OptionalEmail = None
    phone: Optional[str] = None
    linkedin: OptionalUrl = None
    notes: Optional[str] = None


class Recruiter(RecruiterBase):
    id: str
    user_id: str


# Reminder Schemas
class ReminderBase(TrackerModel):
    application_id: Optional[str] = None
    title: NonEmptyStr
    due_date: UtcDatetime
    completed: StrictBool = False


class ReminderCreate(ReminderBase):
    pass


class ReminderUpdate(TrackerModel):
    application_id: Optional[str] = None
    title: Optional[NonEmptyStr] = None
    due_date: Optional[UtcDatetime] = None
    completed: Optional[StrictBool] = None


class Reminder(ReminderBase):
    id: str
    user_id: str


# Error Schemas
class ErrorMessage(BaseModel):
    message: str
    field: Optional[str] = None


class EntitySchemas(NamedTuple):
    """The shapes of one entity kind, plus the fields an update may not clear."""

    entity: Type[TrackerModel]
    insert: Type[TrackerModel]
    update: Type[TrackerModel]
    required: tuple


ENTITY_SCHEMAS: Dict[EntityKind, EntitySchemas] = {
    EntityKind.APPLICATION: EntitySchemas(Application, ApplicationCreate, ApplicationUpdate,
                                          required=("company", "title", "status", "application_date")),
    EntityKind.INTERVIEW: EntitySchemas(Interview, InterviewCreate, InterviewUpdate,
                                        required=("round", "interview_date", "completed")),
    EntityKind.RECRUITER: EntitySchemas(Recruiter, RecruiterCreate, RecruiterUpdate,
                                        required=("name",)),
    EntityKind.REMINDER: EntitySchemas(Reminder, ReminderCreate, ReminderUpdate,
                                       required=("title", "due_date", "completed")),
}

# Assigned by the server, never accepted from a client
SERVER_OWNED_FIELDS = ("id", "user_id", "created_at", "updated_at")

# Fields that would move a record to another owner once it exists
OWNERSHIP_FIELDS = {
    EntityKind.INTERVIEW: ("application_id",),
}


def _field_names(raw: Dict[str, Any]) -> Dict[str, str]:
    """Map each snake_case field name to the key the client actually sent."""
    names = {}
    for key in raw:
        names[key] = key
        names.setdefault(to_snake(key), key)
    return names


def _reject_fields(raw: Dict[str, Any], forbidden) -> None:
    sent = _field_names(raw)
    for field in forbidden:
        if field in sent:
            raise ValidationError(sent[field], f"{sent[field]} cannot be set by the client")


def _first_error(exc: PydanticValidationError) -> ValidationError:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error["loc"]) or None
    message = error["msg"]
    return ValidationError(field, f"{field}: {message}" if field else message)


def _require_mapping(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValidationError(None, "Request body must be a JSON object")
    return raw


def validate_insert(kind: EntityKind, raw: Any) -> TrackerModel:
    """
    Validate untrusted input for a new record of ``kind``.

    Raises ValidationError for the first violated constraint.
    """
    raw = _require_mapping(raw)
    _reject_fields(raw, SERVER_OWNED_FIELDS)
    try:
        return ENTITY_SCHEMAS[kind].insert.model_validate(raw)
    except PydanticValidationError as exc:
        raise _first_error(exc) from exc


def validate_partial_update(kind: EntityKind, raw: Any) -> Dict[str, Any]:
    """
    Validate a partial update for ``kind``. Every field is optional, but fields
    that are present must be valid, and required fields cannot be cleared.

    Returns the patch as a snake_case dict holding only the fields sent.
    """
    raw = _require_mapping(raw)
    _reject_fields(raw, SERVER_OWNED_FIELDS + OWNERSHIP_FIELDS.get(kind, ()))
    schemas = ENTITY_SCHEMAS[kind]
    try:
        patch = schemas.update.model_validate(raw).model_dump(exclude_unset=True)
    except PydanticValidationError as exc:
        raise _first_error(exc) from exc

    sent = _field_names(raw)
    for field in schemas.required:
        if field in patch and patch[field] is None:
            raise ValidationError(sent.get(field, field), f"{sent.get(field, field)} cannot be null")
    return patch
