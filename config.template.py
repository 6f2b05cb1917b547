#!/usr/bin/env python3
"""
OpenProject Work Logger - Configuration Template

Copy this file to config.py and update the values below before running
`worklogger`.

Run 'worklogger-check' after configuration to get suggested project mappings
and verify your setup.
"""

CONFIG = {
    "base_url": "https://openproject.example.com",

    # API token from Account Settings > Access Tokens
    # (OPENPROJECT_API_TOKEN in the environment takes precedence)
    "api_token": "your_api_token_here",

    # User ID for "Accountable" field on new work packages
    "accountable_user_id": None,

    # User ID for "Assignee" field on new work packages
    "assignee_user_id": None,
}

# Project name to ID mappings - use exact project names as they appear in JSON
# Run 'worklogger-check' to get the suggested mappings from your OpenProject instance
PROJECT_MAPPINGS = {
    "PROJECT_NAME_1": 64,
    "PROJECT_NAME_2": 65,
    "PROJECT_NAME_3": 66,
}

# Activity name to OpenProject activity ID mappings
ACTIVITY_MAPPINGS = {
    "Development": 3,
    "Support": 5,
    "Meeting": 14,
    "Testing": 4,
    "Specification": 2,
    "Other": 6,
    "Change Request": 15,
    "Management": 16,
}

# Processing options (all optional)
OPTIONS = {
    # Look up every new subject on the server while parsing the work log
    "validate_against_server": True,

    # Abort parsing when a subject already exists on the server
    # (False reports the collisions as warnings and continues)
    "throw_on_server_duplicates": True,

    # SCRUM entries without a work_package_id: "drop" skips them silently,
    # "error" reports them as validation errors
    "recurring_without_link": "drop",

    # Status for new work packages when none is chosen (7 = In Progress)
    "default_status_id": 7,
}

# Configuration Instructions:
#
# 1. Get API Token:
#    - Log into OpenProject
#    - Go to Account Settings > Access Tokens
#    - Create new API token
#    - Copy token to 'api_token' above
#
# 2. Find Project IDs and Names:
#    - Run: worklogger-check
#    - Copy the suggested PROJECT_MAPPINGS from the output
#
# 3. Verify Setup:
#    - Run: worklogger-check
#    - All projects should show as accessible
