"""Start/end time calculation for the tasks of one date.

Tasks are chained in source order: the first non-recurring task starts at an
anchor time supplied by the user, every following task starts after the
previous one ends plus its own break. Recurring meetings (SCRUM) sit at a
fixed slot and take no part in the chain.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from .dates import add_hours_to_time, hours_to_minutes, minutes_to_time, time_to_minutes
from .models import TimeIssue

logger = logging.getLogger(__name__)

RECURRING_MEETING_START = "10:00"

TIME_OVERLAP = "time_overlap"
MISSING_LINKED_WORK_ITEM = "missing_linked_work_item"


@dataclass
class ChainResult:
    needs_start_time: bool = False
    issues: List[TimeIssue] = field(default_factory=list)

    @property
    def overlaps(self):
        return [issue for issue in self.issues if issue.kind == TIME_OVERLAP]


class TimeChainBuilder:
    """Computes calculated_start / calculated_end for a DateGroup."""

    def __init__(self, recurring_start=RECURRING_MEETING_START):
        self.recurring_start = recurring_start

    def build(self, group, anchor_start=None):
        result = ChainResult()

        cursor = None
        previous = None

        for task in group.tasks:
            if task.is_recurring_meeting:
                self._place_recurring(task, result)
                continue

            if result.needs_start_time:
                continue

            if previous is None:
                if anchor_start is None:
                    result.needs_start_time = True
                    continue
                start_minutes = time_to_minutes(anchor_start)
            else:
                start_minutes = cursor + hours_to_minutes(task.break_hours)

            task.calculated_start = minutes_to_time(start_minutes)
            task.calculated_end = add_hours_to_time(task.calculated_start, task.duration_hours)

            if previous is not None:
                self._check_overlap(task, previous, result)

            cursor = time_to_minutes(task.calculated_start) + hours_to_minutes(task.duration_hours)
            previous = task

        if result.needs_start_time:
            # Chaining is deferred; drop stale times from an earlier anchor.
            for task in group.tasks:
                if not task.is_recurring_meeting:
                    task.calculated_start = None
                    task.calculated_end = None
            logger.info("Date %s needs a start time for its first task", group.entry_date)

        group.needs_start_time = result.needs_start_time
        group.issues = list(result.issues)
        return result

    def _place_recurring(self, task, result):
        if not task.linked_work_item_id:
            result.issues.append(
                TimeIssue(
                    kind=MISSING_LINKED_WORK_ITEM,
                    task=task,
                    message=f'SCRUM entry "{task.subject}" is missing required work_package_id',
                )
            )
        task.calculated_start = self.recurring_start
        task.calculated_end = add_hours_to_time(self.recurring_start, task.duration_hours)

    def _check_overlap(self, task, previous, result):
        if time_to_minutes(task.calculated_start) < time_to_minutes(previous.calculated_end):
            message = (
                f"Start time {task.calculated_start} overlaps with previous task "
                f"end time {previous.calculated_end}"
            )
            logger.warning("%s: %s", task.label, message)
            result.issues.append(TimeIssue(kind=TIME_OVERLAP, task=task, message=message))


def next_group_needing_start(groups):
    """Return the earliest date whose first non-recurring task has no start time yet."""
    for entry_date in sorted(groups):
        group = groups[entry_date]
        anchor = group.anchor
        if anchor is not None and anchor.calculated_start is None:
            return entry_date
    return None
