"""Sorting of tasks into recurring, linked, duplicate and new buckets."""

import logging

from .errors import ConfigurationError, DuplicateLookupError
from .executor import InlineExecutor
from .models import CategorizationResult, Category, DuplicateWarning

logger = logging.getLogger(__name__)


def unique_tasks(tasks):
    """Drop repeated project|subject|duration entries, keeping the first."""
    seen = set()
    unique = []
    for task in tasks:
        if task.key in seen:
            continue
        seen.add(task.key)
        unique.append(task)
    return unique


class Categorizer:
    def __init__(self, resolver, project_mappings, executor=None):
        self.resolver = resolver
        self.project_mappings = project_mappings
        self.executor = executor or InlineExecutor()

    def categorize(self, tasks):
        result = CategorizationResult()

        for task in unique_tasks(tasks):
            category = self.categorize_task(task, result)
            task.category = category
            result.bucket(category).append(task)

        self._log_summary(result)
        return result

    def categorize_task(self, task, result):
        if task.is_recurring_meeting and task.linked_work_item_id:
            logger.info(
                "Entry %r categorized as SCRUM (work_package_id: %s)",
                task.subject,
                task.linked_work_item_id,
            )
            return Category.RECURRING

        if task.linked_work_item_id:
            logger.info(
                "Entry %r categorized as EXISTING (work_package_id: %s)",
                task.subject,
                task.linked_work_item_id,
            )
            return Category.LINKED

        project_id = self.project_mappings.get(task.project)
        if not project_id:
            raise ConfigurationError(f"Project mapping not found for {task.project}")

        try:
            existing = self.executor.run(self.resolver.find_by_subject, project_id, task.subject)
        except DuplicateLookupError as e:
            # Fail open: a failed lookup must not block logging time.
            logger.error("Error checking for duplicates on entry %r: %s", task.subject, e)
            return Category.NEW

        if existing is None:
            logger.info("Entry %r has no match on server, will create new work package", task.subject)
            return Category.NEW

        task.resolved_work_item_id = existing.get("id")
        task.existing_subject = existing.get("subject", "")
        result.duplicate_warnings.append(
            DuplicateWarning(
                task=task,
                project_id=project_id,
                existing_work_item_id=task.resolved_work_item_id,
                existing_subject=task.existing_subject,
                entry_index=task.source_index,
            )
        )
        logger.info(
            "DUPLICATE FOUND: entry %r matches existing work package ID %s",
            task.subject,
            task.resolved_work_item_id,
        )
        return Category.DUPLICATE

    def _log_summary(self, result):
        counts = result.summary()
        logger.info(
            "Analysis summary: %d SCRUM, %d existing, %d duplicate, %d new",
            counts["recurring"],
            counts["linked"],
            counts["duplicate"],
            counts["new"],
        )
