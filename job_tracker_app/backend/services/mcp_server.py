"""
MCP server for the tracker tools.

Publishes the four application tools and the ``applications://list``
resource of one TrackerTools instance. Local agents talk to it over stdio;
remote agents connect over SSE (GET /sse for the event stream, POST
/messages/ for requests).
"""
import logging
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ResourceError, ToolError

from ..config.settings import Settings
from ..errors import TrackerError
from ..schemas import ApplicationStatus
from .automation_tools import APPLICATIONS_RESOURCE_URI, TOOL_DESCRIPTIONS, TrackerTools

logger = logging.getLogger(__name__)

TRANSPORTS = ("stdio", "sse")


def _call(tools: TrackerTools, name: str, arguments: Dict[str, Any]) -> str:
    # Omitted optional arguments arrive as None; they must not clear stored fields
    arguments = {key: value for key, value in arguments.items() if value is not None}
    try:
        return tools.call_tool(name, arguments)
    except TrackerError as e:
        if e.status_code >= 500:
            logger.error("Tool %s failed: %s", name, e, exc_info=e)
            raise ToolError("Internal error") from e
        raise ToolError(e.message) from e


def build_mcp_server(tools: TrackerTools, name: str = "job-tracker-mcp",
                     host: str = "127.0.0.1", port: int = 3001) -> FastMCP:
    """Register ``tools`` on a new FastMCP server. ``host``/``port`` only matter for SSE."""
    server = FastMCP(name, host=host, port=port)

    @server.tool(name="add_application", description=TOOL_DESCRIPTIONS["add_application"])
    def add_application(
        company: str,
        title: str,
        description: Optional[str] = None,
        status: Optional[ApplicationStatus] = None,
        url: Optional[str] = None,
        location: Optional[str] = None,
        type: Optional[str] = None,
        salary: Optional[str] = None,
    ) -> str:
        return _call(tools, "add_application", {
            "company": company,
            "title": title,
            "description": description,
            "status": status,
            "url": url,
            "location": location,
            "type": type,
            "salary": salary,
        })

    @server.tool(name="update_application", description=TOOL_DESCRIPTIONS["update_application"])
    def update_application(id: str, status: Optional[ApplicationStatus] = None, notes: Optional[str] = None) -> str:
        return _call(tools, "update_application", {"id": id, "status": status, "notes": notes})

    @server.tool(name="search_applications", description=TOOL_DESCRIPTIONS["search_applications"])
    def search_applications(query: str) -> str:
        return _call(tools, "search_applications", {"query": query})

    @server.tool(name="delete_application", description=TOOL_DESCRIPTIONS["delete_application"])
    def delete_application(id: str) -> str:
        return _call(tools, "delete_application", {"id": id})

    @server.resource(APPLICATIONS_RESOURCE_URI, name="applications",
                     description="All job applications of the current user.", mime_type="application/json")
    def applications() -> str:
        try:
            return tools.read_applications()
        except TrackerError as e:
            logger.error("Reading %s failed: %s", APPLICATIONS_RESOURCE_URI, e, exc_info=e)
            raise ResourceError("Internal error") from e

    return server


def server_from_settings(tools: TrackerTools, settings: Settings) -> FastMCP:
    return build_mcp_server(tools, name=settings.mcp_server_name, host=settings.mcp_host, port=settings.mcp_port)


def run_server(tools: TrackerTools, settings: Settings, transport: str = "stdio") -> None:
    """Serve until the client disconnects (stdio) or the process is stopped (sse)."""
    if transport not in TRANSPORTS:
        raise ValueError(f"Unknown transport: {transport}")
    server = server_from_settings(tools, settings)
    if transport == "sse":
        logger.info("Tracker MCP server for user %s listening on http://%s:%s/sse",
                    tools.user_id, settings.mcp_host, settings.mcp_port)
    else:
        logger.info("Tracker MCP server for user %s serving on stdio", tools.user_id)
    server.run(transport=transport)
