"""Execution loop that turns categorized tasks into work packages and time entries."""

import logging
import threading

from .client import matching_time_entries
from .dates import parse_duration
from .errors import ConfigurationError, DuplicateLookupError, RemoteOperationError
from .executor import SerialExecutor
from .models import Category, ProcessingOutcome, ProcessingReport, TaskStatus

logger = logging.getLogger(__name__)


class ProcessingPipeline:
    """Processes tasks one at a time, in order, continuing past failures.

    Every remote call goes through ``executor`` so that no two calls are
    ever in flight together.
    """

    def __init__(self, client, resolver, settings, executor=None):
        self.client = client
        self.resolver = resolver
        self.settings = settings
        self.executor = executor or SerialExecutor()
        self._cancelled = threading.Event()

    def cancel(self):
        """Stop after the task currently being processed."""
        self._cancelled.set()

    def run(self, tasks, categorization=None, comment_data=None, progress_callback=None):
        comment_data = comment_data or {}
        new_tasks = categorization.new if categorization is not None else []
        tasks = list(tasks)

        self.check_project_mappings(tasks)

        self._cancelled.clear()
        report = ProcessingReport(total=len(tasks))

        logger.info("Processing %d work log entries", len(tasks))

        for index, task in enumerate(tasks, 1):
            if self._cancelled.is_set():
                logger.warning("Processing cancelled after %d of %d entries", index - 1, len(tasks))
                report.cancelled = True
                break

            if progress_callback:
                progress_callback(index, len(tasks), task)
            logger.info("[%d/%d] Processing: %s", index, len(tasks), task.label)

            overrides = self._overrides_for(task, new_tasks, comment_data)
            outcome = self.process_task(task, overrides)
            task.status = outcome.kind
            report.outcomes.append(outcome)

        logger.info(
            "Summary: %d created, %d updated, %d failed",
            report.created,
            report.updated,
            report.failed,
        )
        return report

    def check_project_mappings(self, tasks):
        """Raise ConfigurationError for unmapped projects before any remote call."""
        for task in tasks:
            if not task.linked_work_item_id and not task.project_id:
                self.settings.project_id(task.project)

    def process_task(self, task, overrides=None):
        overrides = overrides or {}
        outcome = ProcessingOutcome(task=task, succeeded=False, kind=TaskStatus.ERROR)

        try:
            work_item_id, work_item_status = self.ensure_work_item(task, overrides)
            outcome.work_item_id = work_item_id
            outcome.work_item_status = work_item_status
            self.ensure_time_entry(task, work_item_id, overrides, outcome)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error("Failed to process %s: %s", task.label, e)
            outcome.succeeded = False
            outcome.kind = TaskStatus.ERROR
            outcome.error_message = str(e)
            return outcome

        outcome.succeeded = True
        return outcome

    def ensure_work_item(self, task, overrides):
        """Return (work_item_id, status) for the work package the task logs against."""
        if task.category in (Category.RECURRING, Category.LINKED) or (
            task.category is None and task.linked_work_item_id
        ):
            logger.info("  Using existing work package ID: %s", task.linked_work_item_id)
            return task.linked_work_item_id, TaskStatus.USING_EXISTING_WORK_ITEM

        if task.category == Category.DUPLICATE and task.resolved_work_item_id:
            logger.info("  Reusing existing work package ID: %s", task.resolved_work_item_id)
            return task.resolved_work_item_id, TaskStatus.REUSED_EXISTING_WORK_ITEM

        project_id = task.project_id or self.settings.project_id(task.project)

        # Re-check right before creating; another actor may have created it since analysis.
        try:
            existing = self.executor.run(self.resolver.find_by_subject, project_id, task.subject)
        except DuplicateLookupError as e:
            logger.warning("  Duplicate check failed, creating anyway: %s", e)
            existing = None

        if existing is not None:
            task.resolved_work_item_id = existing.get("id")
            task.existing_subject = existing.get("subject", "")
            logger.info("  Found existing work package with same subject (ID: %s)", existing.get("id"))
            return task.resolved_work_item_id, TaskStatus.REUSED_EXISTING_WORK_ITEM

        work_item = self.executor.run(
            self.client.create_work_item,
            project_id,
            task.subject,
            task.activity,
            overrides.get("comment") or None,
            overrides.get("status_id") or self.settings.default_status_id,
        )
        work_item_id = (work_item or {}).get("id")
        if not work_item_id:
            raise RemoteOperationError(f"Work package creation returned no ID for {task.label}")

        task.resolved_work_item_id = work_item_id
        logger.info("  Created work package ID: %s", work_item_id)
        return work_item_id, TaskStatus.CREATED_WORK_ITEM

    def ensure_time_entry(self, task, work_item_id, overrides, outcome):
        entries = self.executor.run(self.client.list_time_entries)
        existing = matching_time_entries(entries or [], work_item_id, task.entry_date)

        if existing:
            existing_hours = sum(parse_duration(entry.get("hours")) for entry in existing)
            logger.warning(
                "  Time entry already exists for %s - skipping (%d found, %sh logged)",
                task.entry_date,
                len(existing),
                existing_hours,
            )
            outcome.kind = TaskStatus.SKIPPED_DUPLICATE_TIME_ENTRY
            outcome.existing_time_entries = len(existing)
            outcome.existing_hours = existing_hours
            return

        time_entry = self.executor.run(
            self.client.create_time_entry,
            work_item_id,
            task.entry_date,
            task.calculated_start,
            task.duration_hours,
            task.activity,
            overrides.get("comment") or task.subject,
        )
        outcome.time_entry_id = (time_entry or {}).get("id")
        outcome.kind = TaskStatus.CREATED_TIME_ENTRY
        logger.info("  Created time entry (ID: %s)", outcome.time_entry_id)

    def _overrides_for(self, task, new_tasks, comment_data):
        """Look up the comment/status chosen for a new work package by its index."""
        for index, new_task in enumerate(new_tasks):
            if new_task.project == task.project and new_task.subject == task.subject:
                break
        else:
            return {}

        overrides = {}
        comment = comment_data.get(f"comment_{index}")
        if comment:
            overrides["comment"] = str(comment).strip()

        status_value = comment_data.get(f"status_{index}")
        if status_value not in (None, ""):
            try:
                overrides["status_id"] = int(status_value)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid status %r for %s", status_value, task.label)
        return overrides
