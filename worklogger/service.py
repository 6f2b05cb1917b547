"""Stateful orchestration of one work log upload: load, time, analyze, process."""

import logging

from .categorizer import Categorizer
from .client import OpenProjectClient
from .dates import parse_time_input
from .duplicates import DuplicateResolver
from .executor import SerialExecutor
from .parser import WorkLogParser
from .pipeline import ProcessingPipeline
from .timechain import TimeChainBuilder, next_group_needing_start

logger = logging.getLogger(__name__)


class WorkLogService:
    def __init__(self, settings, client=None, executor=None):
        self.settings = settings
        self.client = client or OpenProjectClient(settings)
        self.executor = executor or SerialExecutor()
        self.resolver = DuplicateResolver(self.client, page_size=settings.page_size)
        self.parser = WorkLogParser(settings, self.resolver, self.executor)
        self.chain_builder = TimeChainBuilder()
        self.categorizer = Categorizer(self.resolver, settings.project_mappings, self.executor)
        self.pipeline = ProcessingPipeline(self.client, self.resolver, settings, self.executor)

        self.work_log = None
        self.anchors = {}
        self.analysis = None
        self.statuses = []

    @property
    def groups(self):
        return self.work_log.groups if self.work_log else {}

    @property
    def tasks(self):
        return self.work_log.tasks if self.work_log else []

    def load_file(self, file_path, validate_against_server=None, throw_on_server_duplicates=None):
        """Parse a work log file and compute whatever times are already known."""
        self.work_log = self.parser.parse_file(
            file_path,
            validate_against_server=validate_against_server,
            throw_on_server_duplicates=throw_on_server_duplicates,
        )
        self.anchors = {}
        self.analysis = None
        self.calculate_all_times()
        logger.info(
            "Loaded %d entries across %d date(s) from %s",
            len(self.tasks),
            len(self.groups),
            file_path,
        )
        return self.work_log

    def calculate_all_times(self):
        """Rebuild every date's time chain; returns the issues found."""
        issues = []
        for entry_date, group in self.groups.items():
            result = self.chain_builder.build(group, self.anchors.get(entry_date))
            issues.extend(result.issues)
        return issues

    def next_date_needing_start_time(self):
        return next_group_needing_start(self.groups)

    def set_start_time(self, entry_date, start_time):
        """Set the anchor start time ('9:00 AM', '14:30', ...) for a date and rechain it."""
        group = self.groups.get(entry_date)
        if group is None:
            raise KeyError(f"No entries for date {entry_date}")

        self.anchors[entry_date] = parse_time_input(start_time)
        return self.chain_builder.build(group, self.anchors[entry_date]).issues

    def analyze(self):
        self.analysis = self.categorizer.categorize(self.tasks)
        return self.analysis

    def fetch_statuses(self):
        if not self.statuses:
            self.statuses = self.executor.run(self.client.list_statuses)
        return self.statuses

    def process_all(self, comment_data=None, progress_callback=None):
        if self.analysis is None:
            self.analyze()
        return self.pipeline.run(
            self.tasks,
            categorization=self.analysis,
            comment_data=comment_data,
            progress_callback=progress_callback,
        )

    def total_hours(self):
        return round(sum(task.duration_hours for task in self.tasks), 2)

    def close(self):
        self.executor.shutdown()
