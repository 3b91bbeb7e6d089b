#!/usr/bin/env python3
"""
Print a user's applications straight from the configured document store.

    python -m job_tracker_app.scripts.list_applications --user-id <id>
"""
import argparse
import logging
import sys

from dotenv import load_dotenv

from job_tracker_app.backend.config.settings import get_settings
from job_tracker_app.backend.services.application_tracker import get_storage
from job_tracker_app.backend.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def format_application(app) -> str:
    lines = [f"- [{app.id}] {app.company} - {app.title} ({app.status})"]
    if app.url:
        lines.append(f"  URL: {app.url}")
    if app.salary:
        lines.append(f"  Salary: {app.salary}")
    if app.location:
        lines.append(f"  Location: {app.location}")
    return "\n".join(lines)


def main(argv=None) -> int:
    load_dotenv()
    settings = get_settings()

    parser = argparse.ArgumentParser(description="List a user's job applications")
    parser.add_argument("--user-id", default=settings.automation_user_id, help="Owner of the applications")
    args = parser.parse_args(argv)
    if not args.user_id:
        parser.error("no user id: pass --user-id or set AUTOMATION_USER_ID")

    setup_logging(level=settings.log_level, stream=sys.stderr)
    logger.info("Fetching applications for %s...", args.user_id)
    applications = get_storage().list_applications(args.user_id)

    if not applications:
        print("No applications found.")
        return 0

    print(f"Found {len(applications)} applications:")
    for app in applications:
        print(format_application(app))
        print("")
    return 0


if __name__ == "__main__":
    sys.exit(main())
