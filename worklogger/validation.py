"""Validation of raw work log entries and conversion into :class:`Task` records."""

import logging
import math

from .activities import determine_activity
from .errors import ValidationError
from .models import Task

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("project", "subject", "duration_hours", "activity", "is_scrum")


def _is_number(value):
    if isinstance(value, bool):
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number)


def validate_entry_data(entry_data, project_mappings, entry_index=None):
    """Validate entry data against required schema and allowed values."""
    errors = []
    prefix = f"Entry {entry_index}: " if entry_index is not None else "Entry: "

    if not isinstance(entry_data, dict):
        return [f"{prefix}Entry must be an object"]

    # Required fields validation
    for field_name in REQUIRED_FIELDS:
        if field_name not in entry_data:
            errors.append(f"{prefix}Missing required field '{field_name}'")
        elif entry_data[field_name] is None:
            errors.append(f"{prefix}Field '{field_name}' cannot be null")

    # Project validation
    project = entry_data.get("project")
    if project:
        if not isinstance(project, str) or project not in project_mappings:
            errors.append(
                f"{prefix}Invalid project '{project}'. Allowed values: {list(project_mappings)}"
            )

    # Subject validation
    if entry_data.get("subject") is not None:
        subject = entry_data["subject"]
        if not isinstance(subject, str) or not subject.strip():
            errors.append(f"{prefix}Field 'subject' must be a non-empty string")

    # Duration hours validation
    if entry_data.get("duration_hours") is not None:
        duration = entry_data["duration_hours"]
        if not _is_number(duration):
            errors.append(f"{prefix}Field 'duration_hours' must be a number (integer or float)")
        elif float(duration) <= 0:
            errors.append(f"{prefix}Field 'duration_hours' must be greater than 0")

    # is_scrum validation
    if entry_data.get("is_scrum") is not None:
        if not isinstance(entry_data["is_scrum"], bool):
            errors.append(f"{prefix}Field 'is_scrum' must be a boolean (true or false)")

    # break_hours validation (nullable)
    if entry_data.get("break_hours") is not None:
        break_hours = entry_data["break_hours"]
        if not _is_number(break_hours):
            errors.append(
                f"{prefix}Field 'break_hours' must be a number (integer or float) or null"
            )
        elif float(break_hours) < 0:
            errors.append(f"{prefix}Field 'break_hours' must be 0 or greater")

    # work_package_id validation (nullable, integer only)
    if entry_data.get("work_package_id") is not None:
        wp_id = entry_data["work_package_id"]
        if not _is_positive_integer(wp_id):
            errors.append(f"{prefix}Field 'work_package_id' must be a positive integer or null")

    return errors


def _is_positive_integer(value):
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return value.is_integer() and value > 0
    try:
        return int(value) > 0
    except (TypeError, ValueError):
        return False


def build_task(entry_data, entry_date, project_mappings, source_index=0):
    """Build a Task from an entry that already passed validation."""
    subject = entry_data["subject"].strip()
    work_package_id = entry_data.get("work_package_id")
    activity = entry_data.get("activity") or determine_activity(subject)

    return Task(
        project=entry_data["project"],
        project_id=project_mappings.get(entry_data["project"]),
        subject=subject,
        duration_hours=float(entry_data["duration_hours"]),
        break_hours=float(entry_data.get("break_hours") or 0),
        activity=activity,
        is_recurring_meeting=entry_data["is_scrum"],
        linked_work_item_id=int(work_package_id) if work_package_id is not None else None,
        entry_date=entry_date,
        source_index=source_index,
    )


class EntryValidator:
    """Turns raw entries into tasks, rejecting invalid ones as a whole."""

    def __init__(self, project_mappings, recurring_without_link="drop"):
        self.project_mappings = project_mappings
        self.recurring_without_link = recurring_without_link

    def validate(self, entry_data, entry_date, entry_index=None, source_index=0):
        """Return a Task, None for a silently dropped entry, or raise ValidationError."""
        errors = validate_entry_data(entry_data, self.project_mappings, entry_index)
        if errors:
            raise ValidationError(errors)

        if entry_data["is_scrum"] and entry_data.get("work_package_id") is None:
            if self.recurring_without_link == "error":
                prefix = f"Entry {entry_index}: " if entry_index is not None else "Entry: "
                raise ValidationError(
                    [f"{prefix}SCRUM entry '{entry_data['subject']}' requires a 'work_package_id'"]
                )
            logger.warning(
                "Dropping SCRUM entry %r on %s: no work_package_id",
                entry_data["subject"],
                entry_date,
            )
            return None

        return build_task(entry_data, entry_date, self.project_mappings, source_index)
