"""Parsing of JSON work log files into per-date task groups."""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List

from .dates import parse_date_string
from .errors import (
    DuplicateLookupError,
    FormatError,
    ServerDuplicatesError,
    ValidationError,
)
from .executor import InlineExecutor
from .models import DateGroup, DuplicateWarning
from .validation import EntryValidator

logger = logging.getLogger(__name__)


@dataclass
class RejectedEntry:
    date: str
    entry_index: int
    errors: List[str]


@dataclass
class ParsedWorkLog:
    groups: Dict[str, DateGroup] = field(default_factory=dict)
    server_duplicates: List[DuplicateWarning] = field(default_factory=list)
    rejected: List[RejectedEntry] = field(default_factory=list)

    @property
    def tasks(self):
        return [task for group in self.groups.values() for task in group.tasks]

    def __bool__(self):
        return bool(self.groups)


class WorkLogParser:
    """Parses daily work log files and extracts time entry information."""

    def __init__(self, settings, resolver=None, executor=None):
        self.settings = settings
        self.resolver = resolver
        self.executor = executor or InlineExecutor()
        self.validator = EntryValidator(
            settings.project_mappings, recurring_without_link=settings.recurring_without_link
        )

    def parse_file(self, file_path, validate_against_server=None, throw_on_server_duplicates=None):
        """Parse a JSON work log file."""
        if not file_path:
            raise FormatError("No file path provided")

        if not str(file_path).lower().endswith(".json"):
            raise FormatError(
                "Only JSON format work log files are supported. Please provide a .json file."
            )

        if not os.path.exists(file_path):
            raise FormatError(f"Work log file not found: {file_path}")

        try:
            with open(file_path, "r", encoding="utf-8") as file:
                data = json.load(file)
        except json.JSONDecodeError as e:
            raise FormatError(f"Error parsing JSON file: {e}") from e
        except OSError as e:
            raise FormatError(f"Error reading JSON file: {e}") from e

        return self.parse_content(data, validate_against_server, throw_on_server_duplicates)

    def parse_content(self, data, validate_against_server=None, throw_on_server_duplicates=None):
        """Parse JSON work log content with multiple date entries."""
        if validate_against_server is None:
            validate_against_server = self.settings.validate_against_server
        if throw_on_server_duplicates is None:
            throw_on_server_duplicates = self.settings.throw_on_server_duplicates

        if not isinstance(data, dict) or "logs" not in data:
            raise FormatError("Invalid JSON format: Missing 'logs' array")

        logs = data["logs"]
        if not isinstance(logs, list):
            raise FormatError("Invalid JSON format: 'logs' must be an array")

        if not logs:
            raise FormatError("No log entries found in 'logs' array")

        parsed = ParsedWorkLog()
        source_index = 0
        for log_index, log_entry in enumerate(logs, 1):
            source_index = self._parse_log_entry(log_entry, log_index, parsed, source_index)

        if validate_against_server and parsed.groups:
            parsed.server_duplicates = self.find_server_duplicates(parsed.tasks)
            if parsed.server_duplicates and throw_on_server_duplicates:
                raise ServerDuplicatesError(parsed.server_duplicates)

        return parsed

    def _parse_log_entry(self, log_entry, log_index, parsed, source_index):
        if not isinstance(log_entry, dict) or "date" not in log_entry:
            logger.warning("Log entry %d missing 'date' field, skipping", log_index)
            return source_index

        date_str = log_entry["date"]
        try:
            entry_date = parse_date_string(date_str)
        except FormatError as e:
            logger.warning("Log entry %d has invalid date format '%s': %s", log_index, date_str, e)
            return source_index

        entries = log_entry.get("entries", [])
        if not isinstance(entries, list):
            logger.warning("Log entry %d 'entries' must be an array, skipping", log_index)
            return source_index

        # Logs repeating a date extend the earlier group.
        group = parsed.groups.get(entry_date)
        if group is None:
            group = DateGroup(entry_date=entry_date)

        for entry_index, entry_data in enumerate(entries, 1):
            try:
                task = self.validator.validate(
                    entry_data, entry_date, entry_index=entry_index, source_index=source_index
                )
            except ValidationError as e:
                logger.error("Validation errors for log date %s, entry %d:", date_str, entry_index)
                for error in e.errors:
                    logger.error("  - %s", error)
                logger.error("Skipping this entry due to validation errors.")
                parsed.rejected.append(RejectedEntry(date_str, entry_index, e.errors))
                continue

            if task is not None:
                group.tasks.append(task)
                source_index += 1

        if group.tasks:
            parsed.groups[entry_date] = group
        return source_index

    def find_server_duplicates(self, tasks):
        """Check entries that would create new work packages against the server."""
        if self.resolver is None:
            logger.warning("No server connection configured; skipping duplicate check")
            return []

        tasks_by_project = {}
        for task in tasks:
            if task.linked_work_item_id or task.is_recurring_meeting or not task.project_id:
                continue
            tasks_by_project.setdefault(task.project_id, []).append(task)

        logger.info("Checking %d project(s) for duplicate work packages...", len(tasks_by_project))

        duplicates = []
        for project_id, project_tasks in tasks_by_project.items():
            for task in project_tasks:
                try:
                    existing = self.executor.run(
                        self.resolver.find_by_subject, project_id, task.subject
                    )
                except DuplicateLookupError as e:
                    logger.warning("Could not check for duplicates in project %s: %s", project_id, e)
                    continue

                if existing is not None:
                    duplicates.append(
                        DuplicateWarning(
                            task=task,
                            project_id=project_id,
                            existing_work_item_id=existing.get("id"),
                            existing_subject=existing.get("subject", ""),
                            entry_index=task.source_index,
                        )
                    )
        return duplicates
