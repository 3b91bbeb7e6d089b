#!/usr/bin/env python3
"""
Command-line tool surface for the Job Application Tracker.

All calls act on behalf of one user, taken from --user-id or the
AUTOMATION_USER_ID setting.

    tracker-tools list-tools
    tracker-tools call add_application --args '{"company": "Acme", "title": "Engineer"}'
    tracker-tools read applications://list
    tracker-tools serve                  # MCP over stdio
    tracker-tools serve --transport sse  # MCP over SSE on MCP_HOST:MCP_PORT
"""
import argparse
import json
import logging
import sys

import anyio
from dotenv import load_dotenv

from job_tracker_app.backend.config.settings import get_settings
from job_tracker_app.backend.errors import TrackerError
from job_tracker_app.backend.services.application_tracker import get_storage
from job_tracker_app.backend.services.automation_tools import TrackerTools
from job_tracker_app.backend.services.mcp_server import TRANSPORTS, run_server, server_from_settings
from job_tracker_app.backend.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def describe_tools(tools: TrackerTools, settings) -> list:
    """Tool names, descriptions and input schemas as the MCP server publishes them."""
    server = server_from_settings(tools, settings)
    listed = anyio.run(server.list_tools)
    return [{"name": t.name, "description": t.description, "inputSchema": t.inputSchema} for t in listed]


def main(argv=None) -> int:
    load_dotenv()
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Job Application Tracker tools")
    parser.add_argument("--user-id", default=settings.automation_user_id,
                        help="User the tools act for (default: AUTOMATION_USER_ID)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list-tools", help="Describe the available tools")

    call_parser = subparsers.add_parser("call", help="Invoke one tool")
    call_parser.add_argument("name", help="Tool name")
    call_parser.add_argument("--args", default="{}", help="Tool arguments as a JSON object")

    read_parser = subparsers.add_parser("read", help="Read a resource")
    read_parser.add_argument("uri", help="Resource URI, e.g. applications://list")

    serve_parser = subparsers.add_parser("serve", help="Run the MCP server")
    serve_parser.add_argument("--transport", choices=TRANSPORTS, default="stdio",
                              help="stdio for a local agent, sse for remote clients")

    args = parser.parse_args(argv)

    # stdout is reserved for tool output and the stdio transport
    setup_logging(level=settings.log_level, log_file=settings.log_file, stream=sys.stderr)

    if not args.user_id:
        parser.error("no user id: pass --user-id or set AUTOMATION_USER_ID")

    tools = TrackerTools(get_storage(), args.user_id)

    if args.command == "serve":
        run_server(tools, settings, transport=args.transport)
        return 0
    if args.command == "list-tools":
        print(json.dumps(describe_tools(tools, settings), indent=2))
        return 0

    try:
        if args.command == "call":
            try:
                arguments = json.loads(args.args)
            except json.JSONDecodeError as e:
                parser.error(f"--args is not valid JSON: {e}")
            output = tools.call_tool(args.name, arguments)
        else:
            output = tools.read_resource(args.uri)
    except TrackerError as e:
        if e.status_code >= 500:
            logger.error("%s failed: %s", args.command, e, exc_info=e)
            print("Error: Internal error", file=sys.stderr)
        else:
            print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
