"""
Tool-invocation surface for programmatic agents.

Exposes application CRUD as named tools plus one readable resource, all
scoped to a single user id fixed when the toolset is built. The MCP server
in mcp_server.py and the one-shot CLI in scripts/tracker_tools.py both call
through here.
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from .. import schemas
from ..errors import Forbidden, NotFound, ValidationError
from ..schemas import EntityKind, validate_insert, validate_partial_update
from .access_policy import load_owned
from .application_tracker import TrackerStorage

logger = logging.getLogger(__name__)

APPLICATIONS_RESOURCE_URI = "applications://list"


# Tool argument schemas
class AddApplicationArgs(schemas.TrackerModel):
    company: schemas.NonEmptyStr
    title: schemas.NonEmptyStr
    description: Optional[str] = None
    status: Optional[schemas.ApplicationStatus] = None
    url: schemas.OptionalUrl = None
    location: Optional[str] = None
    type: Optional[str] = None
    salary: Optional[str] = None


class UpdateApplicationArgs(schemas.TrackerModel):
    id: schemas.NonEmptyStr
    status: Optional[schemas.ApplicationStatus] = None
    notes: Optional[str] = None


class SearchApplicationsArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str


class DeleteApplicationArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str





TOOL_DESCRIPTIONS = {
    "add_application": "Add a new job application.",
    "update_application": "Update the status or notes of an existing application.",
    "search_applications": "Search applications by company or title.",
    "delete_application": "Delete an application by ID.",
}


def _to_json(records: List[BaseModel]) -> str:
    return json.dumps([r.model_dump(mode="json", by_alias=True) for r in records], indent=2)


class TrackerTools:
    """Application tools bound to one user. Every tool returns its result as text."""

    def __init__(self, storage: TrackerStorage, user_id: str):
        if not user_id:
            raise ValueError("A user id is required to scope the tools")
        self.storage = storage
        self.user_id = user_id
        self.handlers: Dict[str, Tuple[Type[BaseModel], Callable[[Any], str]]] = {
            "add_application": (AddApplicationArgs, self.add_application),
            "update_application": (UpdateApplicationArgs, self.update_application),
            "search_applications": (SearchApplicationsArgs, self.search_applications),
            "delete_application": (DeleteApplicationArgs, self.delete_application),
        }

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def add_application(self, args: AddApplicationArgs) -> str:
        insert = validate_insert(EntityKind.APPLICATION, args.model_dump(exclude_none=True))
        created = self.storage.create_application(self.user_id, insert)
        return f"Application added for {created.company} ({created.title}) with ID: {created.id}"

    def update_application(self, args: UpdateApplicationArgs) -> str:
        self._load_owned(args.id)
        patch = validate_partial_update(EntityKind.APPLICATION, args.model_dump(exclude={"id"}, exclude_unset=True))
        updated = self.storage.update_application(args.id, patch)
        return f"Application {args.id} updated. Status: {updated.status}"

    def search_applications(self, args: SearchApplicationsArgs) -> str:
        needle = args.query.lower()
        matches = [
            app for app in self.storage.list_applications(self.user_id)
            if needle in app.company.lower() or needle in app.title.lower()
        ]
        return _to_json(matches)

    def delete_application(self, args: DeleteApplicationArgs) -> str:
        self._load_owned(args.id)
        self.storage.delete_application(args.id)
        return f"Application {args.id} deleted."

    def _load_owned(self, application_id: str):
        try:
            return load_owned(self.storage, self.user_id, EntityKind.APPLICATION, application_id)
        except NotFound:
            raise NotFound(f"Application with ID {application_id} not found.")
        except Forbidden:
            raise Forbidden(f"Application with ID {application_id} does not belong to the current user.")

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def read_applications(self) -> str:
        return _to_json(self.storage.list_applications(self.user_id))

    def read_resource(self, uri: str) -> str:
        if uri != APPLICATIONS_RESOURCE_URI:
            raise NotFound(f"Unknown resource: {uri}")
        return self.read_applications()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> str:
        """Validate ``arguments`` against the tool's schema and run it."""
        if name not in self.handlers:
            raise NotFound(f"Unknown tool: {name}")
        args_model, handler = self.handlers[name]
        try:
            args = args_model.model_validate(arguments or {})
        except PydanticValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or None
            raise ValidationError(field, f"{name}: {field}: {error['msg']}" if field else f"{name}: {error['msg']}")
        logger.info("Tool %s called for user %s", name, self.user_id)
        return handler(args)
