from datetime import timedelta

import pytest

from gitfolio.core.projects.formatting import format_relative_time, format_repository_size, get_activity_level

from tests.factories import NOW, days_ago, iso, make_project


@pytest.mark.parametrize("size_kb, expected", [
    (0, "0 KB"),
    (1023, "1023 KB"),
    (1024, "1.0 MB"),
    (1536, "1.5 MB"),
    (1024 * 1024, "1.0 GB"),
])
def test_format_repository_size(size_kb, expected):
    assert format_repository_size(size_kb) == expected


@pytest.mark.parametrize("elapsed, expected", [
    (timedelta(hours=3), "1 day ago"),
    (timedelta(days=1), "1 day ago"),
    (timedelta(days=3), "3 days ago"),
    (timedelta(days=14), "2 weeks ago"),
    (timedelta(days=65), "2 months ago"),
    (timedelta(days=800), "2 years ago"),
])
def test_format_relative_time(elapsed, expected):
    assert format_relative_time(iso(NOW - elapsed), now=NOW) == expected


@pytest.mark.parametrize("days, level", [(1, "high"), (7, "high"), (8, "medium"), (30, "medium"), (31, "low")])
def test_activity_level(days, level):
    assert get_activity_level(make_project(updated_at=days_ago(days)), now=NOW) == level
