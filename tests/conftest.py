import json

import pytest

from worklogger.config import Settings
from worklogger.errors import RemoteOperationError
from worklogger.executor import InlineExecutor


class FakeRemote:
    """In-memory stand-in for OpenProjectClient."""

    def __init__(self):
        self.work_items = {}
        self.time_entries = []
        self.statuses = [{"id": 1, "name": "New"}, {"id": 7, "name": "In Progress"}]
        self.page_requests = []
        self.calls = []
        self.fail_lookups = False
        self.fail_time_entry_subjects = set()
        self._next_id = 1000

    def _new_id(self):
        self._next_id += 1
        return self._next_id

    def add_work_item(self, project_id, subject, work_item_id=None):
        work_item = {"id": work_item_id or self._new_id(), "subject": subject}
        self.work_items.setdefault(project_id, []).append(work_item)
        return work_item

    def add_time_entry(self, work_item_id, date, hours=1.0):
        entry = {
            "id": self._new_id(),
            "spentOn": date,
            "hours": f"PT{hours}H",
            "_links": {"workPackage": {"href": f"/api/v3/work_packages/{work_item_id}"}},
        }
        self.time_entries.append(entry)
        return entry

    def subject_of(self, work_item_id):
        for items in self.work_items.values():
            for item in items:
                if item["id"] == work_item_id:
                    return item["subject"]
        return None

    def list_statuses(self):
        self.calls.append("list_statuses")
        return list(self.statuses)

    def list_work_items(self, project_id, offset, page_size):
        self.calls.append("list_work_items")
        self.page_requests.append((project_id, offset, page_size))
        if self.fail_lookups:
            raise RemoteOperationError("connection refused")
        items = self.work_items.get(project_id, [])
        start = (offset - 1) * page_size
        return [dict(item) for item in items[start:start + page_size]]

    def create_work_item(self, project_id, subject, type_hint=None, description=None, status_id=None):
        self.calls.append("create_work_item")
        work_item = self.add_work_item(project_id, subject)
        work_item.update({"description": description, "status_id": status_id})
        return dict(work_item)

    def list_time_entries(self):
        self.calls.append("list_time_entries")
        return [dict(entry) for entry in self.time_entries]

    def create_time_entry(self, work_item_id, date, start_time, hours, activity, comment=None):
        self.calls.append("create_time_entry")
        if self.subject_of(work_item_id) in self.fail_time_entry_subjects:
            raise RemoteOperationError("HTTP 422: Activity is invalid", status_code=422)
        entry = self.add_time_entry(work_item_id, date, hours)
        entry.update({"start_time": start_time, "activity": activity, "comment": comment})
        return dict(entry)


@pytest.fixture
def settings():
    return Settings(
        base_url="https://openproject.example.com",
        api_token="secret-token",
        project_mappings={"HRIS": 63, "CBL": 66},
    )


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def executor():
    return InlineExecutor()


@pytest.fixture
def write_work_log(tmp_path):
    def _write(data, name="logs.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data), encoding="utf-8")
        return str(path)
    return _write


def make_entry(**overrides):
    entry = {
        "project": "HRIS",
        "subject": "Fixed login bug",
        "break_hours": None,
        "duration_hours": 2,
        "activity": "Development",
        "is_scrum": False,
        "work_package_id": None,
    }
    entry.update(overrides)
    return entry
