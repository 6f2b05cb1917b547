"""Records passed between the parser, chain builder, categorizer and pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TaskStatus(str, Enum):
    USING_EXISTING_WORK_ITEM = "using_existing_work_item"
    REUSED_EXISTING_WORK_ITEM = "reused_existing_work_item"
    CREATED_WORK_ITEM = "created_work_item"
    SKIPPED_DUPLICATE_TIME_ENTRY = "skipped_duplicate_time_entry"
    CREATED_TIME_ENTRY = "created_time_entry"
    ERROR = "error"


class Category(str, Enum):
    RECURRING = "recurring"
    LINKED = "linked"
    DUPLICATE = "duplicate"
    NEW = "new"


@dataclass
class Task:
    """One work log entry, validated and ready for scheduling."""

    project: str
    subject: str
    duration_hours: float
    entry_date: str
    project_id: Optional[int] = None
    break_hours: float = 0.0
    activity: str = "Development"
    is_recurring_meeting: bool = False
    linked_work_item_id: Optional[int] = None
    source_index: int = 0
    calculated_start: Optional[str] = None
    calculated_end: Optional[str] = None
    resolved_work_item_id: Optional[int] = None
    existing_subject: Optional[str] = None
    category: Optional[Category] = None
    status: Optional[TaskStatus] = None

    def __setattr__(self, name, value):
        if name == "entry_date" and "entry_date" in self.__dict__:
            if value != self.__dict__["entry_date"]:
                raise AttributeError("entry_date cannot be changed once set")
        super().__setattr__(name, value)

    @property
    def key(self):
        return f"{self.project}|{self.subject}|{self.duration_hours}"

    @property
    def label(self):
        return f"[{self.project}] {self.subject}"

    @property
    def work_item_id(self):
        return self.linked_work_item_id or self.resolved_work_item_id


@dataclass
class TimeIssue:
    """A non-fatal scheduling problem found while chaining a date's tasks."""

    kind: str
    task: Task
    message: str


@dataclass
class DateGroup:
    entry_date: str
    tasks: List[Task] = field(default_factory=list)
    needs_start_time: bool = False
    issues: List[TimeIssue] = field(default_factory=list)

    def __iter__(self):
        return iter(self.tasks)

    def __len__(self):
        return len(self.tasks)

    @property
    def anchor(self):
        """First non-recurring task, whose start time must be supplied."""
        for task in self.tasks:
            if not task.is_recurring_meeting:
                return task
        return None

    @property
    def total_hours(self):
        return sum(task.duration_hours for task in self.tasks)


@dataclass
class DuplicateWarning:
    task: Task
    project_id: int
    existing_work_item_id: int
    existing_subject: str
    entry_index: Optional[int] = None

    @property
    def message(self):
        return (
            f'Work package with subject "{self.task.subject}" already exists in project '
            f'"{self.task.project}" (ID: {self.existing_work_item_id}). '
            "Use that work package ID or modify the subject."
        )


@dataclass
class CategorizationResult:
    recurring: List[Task] = field(default_factory=list)
    linked: List[Task] = field(default_factory=list)
    duplicate: List[Task] = field(default_factory=list)
    new: List[Task] = field(default_factory=list)
    duplicate_warnings: List[DuplicateWarning] = field(default_factory=list)

    def bucket(self, category):
        return getattr(self, Category(category).value)

    def summary(self):
        return {category.value: len(self.bucket(category)) for category in Category}


@dataclass
class ProcessingOutcome:
    task: Task
    succeeded: bool
    kind: TaskStatus
    work_item_id: Optional[int] = None
    time_entry_id: Optional[int] = None
    error_message: Optional[str] = None
    work_item_status: Optional[TaskStatus] = None
    existing_time_entries: int = 0
    existing_hours: float = 0.0


@dataclass
class ProcessingReport:
    outcomes: List[ProcessingOutcome] = field(default_factory=list)
    total: int = 0
    cancelled: bool = False

    @property
    def created(self):
        return sum(
            1
            for outcome in self.outcomes
            if outcome.succeeded and outcome.work_item_status == TaskStatus.CREATED_WORK_ITEM
        )

    @property
    def updated(self):
        return sum(
            1
            for outcome in self.outcomes
            if outcome.succeeded and outcome.work_item_status != TaskStatus.CREATED_WORK_ITEM
        )

    @property
    def failed(self):
        return sum(1 for outcome in self.outcomes if not outcome.succeeded)

    @property
    def skipped(self):
        return sum(
            1 for outcome in self.outcomes if outcome.kind == TaskStatus.SKIPPED_DUPLICATE_TIME_ENTRY
        )

    @property
    def time_entries_created(self):
        return sum(1 for outcome in self.outcomes if outcome.kind == TaskStatus.CREATED_TIME_ENTRY)

    @property
    def changed_anything(self):
        return self.time_entries_created > 0 or self.created > 0
