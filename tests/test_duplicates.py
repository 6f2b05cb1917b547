import math

import pytest

from worklogger.duplicates import DuplicateResolver
from worklogger.errors import DuplicateLookupError


def test_case_and_whitespace_insensitive_exact_match(remote):
    remote.add_work_item(63, "fix login bug", work_item_id=55)

    match = DuplicateResolver(remote).find_by_subject(63, "Fix Login Bug ")

    assert match["id"] == 55


def test_substring_is_only_a_partial_match(remote, caplog):
    remote.add_work_item(63, "Fix login bug on mobile")

    with caplog.at_level("WARNING", logger="worklogger.duplicates"):
        match = DuplicateResolver(remote).find_by_subject(63, "Fix login bug")

    assert match is None
    assert "partial match" in caplog.text


def test_first_exact_match_in_fetch_order_wins(remote):
    remote.add_work_item(63, "Deploy", work_item_id=1)
    remote.add_work_item(63, "deploy", work_item_id=2)

    assert DuplicateResolver(remote).find_by_subject(63, "DEPLOY")["id"] == 1


def test_match_on_later_page_stops_paging(remote):
    for i in range(25):
        remote.add_work_item(63, f"Task {i}")

    match = DuplicateResolver(remote, page_size=10).find_by_subject(63, "task 12")

    assert match["subject"] == "Task 12"
    assert [offset for _, offset, _ in remote.page_requests] == [1, 2]


@pytest.mark.parametrize("count", [0, 1, 9, 10, 11, 30, 37])
def test_pagination_terminates_within_bound(remote, count):
    for i in range(count):
        remote.add_work_item(63, f"Task {i}")

    assert DuplicateResolver(remote, page_size=10).find_by_subject(63, "missing") is None

    offsets = [offset for _, offset, _ in remote.page_requests]
    assert offsets == list(range(1, len(offsets) + 1))
    assert len(offsets) <= math.ceil(count / 10) + 1


def test_remote_failure_raises_lookup_error(remote):
    remote.fail_lookups = True

    with pytest.raises(DuplicateLookupError):
        DuplicateResolver(remote).find_by_subject(63, "Anything")


def test_default_page_size_is_100(remote):
    DuplicateResolver(remote).find_by_subject(63, "x")
    assert remote.page_requests == [(63, 1, 100)]
