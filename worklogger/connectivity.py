#!/usr/bin/env python3
"""
OpenProject API Connectivity Test

Tests the connection to your OpenProject instance and validates the
configuration settings in config.py.
"""

import argparse
import logging
import sys

from .client import OpenProjectClient
from .config import load_config
from .errors import ConfigurationError, RemoteOperationError

logger = logging.getLogger(__name__)


def check_api_connection(client):
    """Test basic API connectivity and authentication."""
    print("\nTesting OpenProject API Connection...")
    print(f"\nBase URL: {client.base_url}")

    try:
        user_data = client.get_current_user()
    except RemoteOperationError as e:
        print("Authentication Failed!")
        print(f"   {e}")
        return None

    print("\nAPI Connection Successful!")
    print(f"   Authenticated as: {user_data.get('name', 'Unknown')}")
    print(f"   User ID: {user_data.get('id', 'Unknown')}")
    return user_data


def check_projects(client, project_mappings):
    """Test access to configured projects."""
    print("\nTesting Project Access...")

    project_results = {}
    for project_name, project_id in project_mappings.items():
        try:
            project_data = client.get_project(project_id)
        except RemoteOperationError as e:
            reason = {404: "Project not found", 403: "Access denied"}.get(e.status_code, str(e))
            print(f"  x {project_name} (ID: {project_id}) - {reason}")
            project_results[project_name] = False
            continue

        print(f"  ok {project_name} (ID: {project_id}) - {project_data.get('name', 'Unknown')}")
        project_results[project_name] = True

    return project_results


def suggest_project_mappings(client):
    """Print PROJECT_MAPPINGS suggestions built from the server's project list."""
    print("\nRetrieving Project Mappings from OpenProject...")

    try:
        projects = client.list_projects()
    except RemoteOperationError as e:
        print(f"Error retrieving projects: {e}")
        return None

    project_mappings = {}
    for project in projects:
        identifier = (project.get("identifier") or "").upper()
        if identifier:
            project_mappings[identifier] = project.get("id")

    print(f"\nAvailable Projects ({len(projects)} total)")
    print("PROJECT_MAPPINGS = {")
    for identifier, project_id in project_mappings.items():
        print(f"    '{identifier}': {project_id},")
    print("}")
    return project_mappings


def check_user_permissions(client, settings):
    """Validate the accountable and assignee user IDs."""
    print("\nTesting User Permissions...")

    for user_type, user_id in [
        ("Accountable", settings.accountable_user_id),
        ("Assignee", settings.assignee_user_id),
    ]:
        if not user_id:
            print(f"  {user_type} User ID not configured")
            continue
        try:
            user_data = client.get_user(user_id)
        except RemoteOperationError as e:
            print(f"  x {user_type} User (ID: {user_id}) - {e}")
            continue
        print(f"  ok {user_type} User (ID: {user_id}) - {user_data.get('name', 'Unknown')}")


def main(argv=None):
    """Run all API checks."""
    parser = argparse.ArgumentParser(description="Check OpenProject connectivity and config.")
    parser.add_argument("-c", "--config", default=None, help="config module (default: config.py)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING)

    try:
        settings = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 2

    client = OpenProjectClient(settings)

    print("\nOpenProject API Configuration Test")
    print("=" * 50)

    if check_api_connection(client) is None:
        print("\nCannot proceed - API connection failed")
        print("\nTroubleshooting:")
        print("1. Check your base_url in config.py")
        print("2. Verify your api_token is correct")
        print("3. Ensure you have internet connectivity")
        return 1

    project_results = check_projects(client, settings.project_mappings)
    suggest_project_mappings(client)
    check_user_permissions(client, settings)

    accessible = sum(1 for result in project_results.values() if result)
    print("\nTest Summary")
    print("=" * 50)
    print(f"Projects Accessible: {accessible}/{len(project_results)}")

    if accessible < len(project_results):
        print("\nSome projects are not accessible:")
        for project_name, ok in project_results.items():
            if not ok:
                print(f"   - {project_name} (ID: {settings.project_mappings[project_name]})")
        return 1

    print("\nYou can now run: worklogger")
    return 0


if __name__ == "__main__":
    sys.exit(main())
