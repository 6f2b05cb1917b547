import pytest

from worklogger.categorizer import Categorizer, unique_tasks
from worklogger.duplicates import DuplicateResolver
from worklogger.errors import ConfigurationError
from worklogger.models import Category, Task

MAPPINGS = {"HRIS": 63, "CBL": 66}


def make_task(subject, project="HRIS", duration=1.0, scrum=False, linked=None, entry_date="2025-10-23"):
    return Task(
        project=project,
        project_id=MAPPINGS.get(project),
        subject=subject,
        duration_hours=duration,
        is_recurring_meeting=scrum,
        linked_work_item_id=linked,
        entry_date=entry_date,
    )


@pytest.fixture
def categorizer(remote):
    return Categorizer(DuplicateResolver(remote), MAPPINGS)


def test_buckets_follow_precedence(remote, categorizer):
    remote.add_work_item(63, "fix login bug", work_item_id=77)
    scrum = make_task("Daily scrum", scrum=True, linked=5)
    linked = make_task("Sprint planning", linked=9)
    duplicate = make_task("Fix Login Bug ")
    new = make_task("Brand new work")

    result = categorizer.categorize([scrum, linked, duplicate, new])

    assert result.recurring == [scrum]
    assert result.linked == [linked]
    assert result.duplicate == [duplicate]
    assert result.new == [new]
    assert duplicate.category == Category.DUPLICATE
    assert duplicate.resolved_work_item_id == 77
    assert duplicate.existing_subject == "fix login bug"
    assert [w.existing_work_item_id for w in result.duplicate_warnings] == [77]


def test_linked_tasks_never_hit_the_server(remote, categorizer):
    categorizer.categorize([make_task("Daily scrum", scrum=True, linked=5), make_task("X", linked=9)])
    assert remote.page_requests == []


def test_lookup_failure_falls_back_to_new(remote, categorizer):
    remote.fail_lookups = True
    task = make_task("Fix login bug")

    result = categorizer.categorize([task])

    assert result.new == [task]
    assert result.duplicate == []


def test_unique_tasks_keeps_first_occurrence():
    first = make_task("Deploy", duration=2)
    repeat = make_task("Deploy", duration=2, entry_date="2025-10-24")
    other_duration = make_task("Deploy", duration=3)

    assert unique_tasks([first, repeat, other_duration]) == [first, other_duration]
    assert unique_tasks([first, repeat, other_duration])[0] is first


def test_buckets_are_disjoint(remote, categorizer):
    remote.add_work_item(66, "Report", work_item_id=3)
    tasks = [
        make_task("Report", project="CBL"),
        make_task("Report", project="CBL"),
        make_task("Standup", scrum=True, linked=2),
        make_task("Other"),
    ]

    result = categorizer.categorize(tasks)

    seen = [id(t) for bucket in (result.recurring, result.linked, result.duplicate, result.new) for t in bucket]
    assert len(seen) == len(set(seen)) == 3


def test_missing_project_mapping_is_a_configuration_error(categorizer):
    with pytest.raises(ConfigurationError):
        categorizer.categorize([make_task("Orphan", project="UNKNOWN")])
