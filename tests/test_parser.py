import pytest

from conftest import make_entry
from worklogger.duplicates import DuplicateResolver
from worklogger.errors import FormatError, ServerDuplicatesError
from worklogger.parser import WorkLogParser


@pytest.fixture
def parser(settings, remote):
    return WorkLogParser(settings, DuplicateResolver(remote))


def work_log(*logs):
    return {"logs": list(logs)}


def test_parses_entries_grouped_by_canonical_date(parser):
    data = work_log(
        {"date": "oct-23-2025", "entries": [make_entry(), make_entry(subject="Review", project="CBL")]},
        {"date": "october-24-2025", "entries": [make_entry(subject="Deploy")]},
    )

    parsed = parser.parse_content(data)

    assert list(parsed.groups) == ["2025-10-23", "2025-10-24"]
    assert [t.subject for t in parsed.groups["2025-10-23"]] == ["Fixed login bug", "Review"]
    assert [t.source_index for t in parsed.tasks] == [0, 1, 2]
    assert parsed.groups["2025-10-23"].tasks[1].project_id == 66


def test_invalid_entries_are_rejected_individually(parser):
    data = work_log(
        {"date": "oct-23-2025", "entries": [make_entry(duration_hours=0), make_entry(subject="Keep me")]}
    )

    parsed = parser.parse_content(data)

    assert [t.subject for t in parsed.tasks] == ["Keep me"]
    assert len(parsed.rejected) == 1
    assert parsed.rejected[0].entry_index == 1


def test_bad_date_skips_only_that_log(parser):
    data = work_log(
        {"date": "sept-31-2025", "entries": [make_entry()]},
        {"entries": [make_entry()]},
        {"date": "oct-01-2025", "entries": "nope"},
        {"date": "oct-02-2025", "entries": [make_entry(subject="Good")]},
    )

    parsed = parser.parse_content(data)

    assert list(parsed.groups) == ["2025-10-02"]


def test_repeated_date_extends_group(parser):
    data = work_log(
        {"date": "oct-23-2025", "entries": [make_entry(subject="A")]},
        {"date": "Oct-23-2025", "entries": [make_entry(subject="B")]},
    )

    parsed = parser.parse_content(data)

    assert [t.subject for t in parsed.groups["2025-10-23"]] == ["A", "B"]


@pytest.mark.parametrize("data", [{}, {"logs": {}}, {"logs": []}, []])
def test_structural_errors(parser, data):
    with pytest.raises(FormatError):
        parser.parse_content(data)


def test_server_duplicates_abort_by_default(parser, remote):
    remote.add_work_item(63, "fixed login bug", work_item_id=12)
    data = work_log({"date": "oct-23-2025", "entries": [make_entry()]})

    with pytest.raises(ServerDuplicatesError) as exc_info:
        parser.parse_content(data)

    assert exc_info.value.duplicates[0].existing_work_item_id == 12
    assert "already exists" in str(exc_info.value)


def test_server_duplicates_as_warnings(parser, remote):
    remote.add_work_item(63, "fixed login bug", work_item_id=12)
    data = work_log(
        {
            "date": "oct-23-2025",
            "entries": [make_entry(), make_entry(subject="Scrum", is_scrum=True, work_package_id=4)],
        }
    )

    parsed = parser.parse_content(data, throw_on_server_duplicates=False)

    assert [d.task.subject for d in parsed.server_duplicates] == ["Fixed login bug"]
    # Linked and recurring entries are not looked up.
    assert [request[0] for request in remote.page_requests] == [63]


def test_server_check_can_be_disabled(parser, remote):
    remote.add_work_item(63, "fixed login bug")
    data = work_log({"date": "oct-23-2025", "entries": [make_entry()]})

    parsed = parser.parse_content(data, validate_against_server=False)

    assert parsed.server_duplicates == []
    assert remote.page_requests == []


def test_server_lookup_failure_is_ignored(parser, remote):
    remote.fail_lookups = True
    data = work_log({"date": "oct-23-2025", "entries": [make_entry()]})

    parsed = parser.parse_content(data)

    assert len(parsed.tasks) == 1
    assert parsed.server_duplicates == []


def test_parse_file(parser, write_work_log):
    path = write_work_log(work_log({"date": "oct-23-2025", "entries": [make_entry()]}))

    parsed = parser.parse_file(path, validate_against_server=False)

    assert list(parsed.groups) == ["2025-10-23"]


def test_parse_file_rejects_non_json(parser, tmp_path):
    path = tmp_path / "logs.txt"
    path.write_text("{}", encoding="utf-8")

    with pytest.raises(FormatError, match="Only JSON"):
        parser.parse_file(str(path))


def test_parse_file_rejects_malformed_json(parser, tmp_path):
    path = tmp_path / "logs.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(FormatError, match="Error parsing JSON"):
        parser.parse_file(str(path))


def test_non_finite_duration_is_rejected(parser, tmp_path):
    path = tmp_path / "logs.json"
    path.write_text(
        '{"logs": [{"date": "oct-23-2025", "entries": ['
        '{"project": "HRIS", "subject": "Broken", "duration_hours": NaN,'
        ' "activity": "Development", "is_scrum": false}]}]}',
        encoding="utf-8",
    )

    parsed = parser.parse_file(str(path), validate_against_server=False)

    assert parsed.tasks == []
    assert "'duration_hours' must be a number" in parsed.rejected[0].errors[0]
