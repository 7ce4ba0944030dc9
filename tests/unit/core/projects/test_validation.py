import pytest

from gitfolio.core.projects.validation import find_problems, is_valid, sanitize, validate
from gitfolio.domain.models.errors import InvalidRecordError

from tests.factories import make_raw_repo


def test_complete_record_is_valid(raw_repo):
    assert is_valid(raw_repo())
    assert find_problems(raw_repo()) == []


@pytest.mark.parametrize("field", ["id", "name", "full_name", "html_url", "stargazers_count", "forks_count", "created_at", "updated_at", "private", "owner"])
def test_missing_required_field_is_invalid(field):
    raw = make_raw_repo()
    del raw[field]
    assert not is_valid(raw)


@pytest.mark.parametrize("field, value", [
    ("id", "1296269"),
    ("id", True),
    ("stargazers_count", None),
    ("private", "false"),
    ("name", 42),
    ("owner", "octocat"),
    ("owner", {"id": 1}),
])
def test_mistyped_field_is_invalid(field, value):
    assert not is_valid(make_raw_repo(**{field: value}))


@pytest.mark.parametrize("raw", [None, [], "repo", 42])
def test_non_object_is_invalid(raw):
    assert find_problems(raw) == [f"expected an object, got {type(raw).__name__}"]


def test_validate_returns_tagged_result(raw_repo):
    good = validate(raw_repo())
    assert good.ok
    assert good.unwrap()["name"] == "Hello-World"

    bad = validate(raw_repo(id=None))
    assert not bad.ok
    assert isinstance(bad.error, InvalidRecordError)
    with pytest.raises(InvalidRecordError, match="full_name='octocat/Hello-World'"):
        bad.unwrap()


def test_error_names_every_problem():
    raw = make_raw_repo(private="yes")
    del raw["id"]
    result = validate(raw)
    assert "missing 'id'" in result.error.reason
    assert "'private' must be a boolean" in result.error.reason


def test_error_identity_falls_back_to_id_then_unidentified():
    assert validate(make_raw_repo(full_name=None, private=None)).error.identity == "id=1296269"
    assert validate({}).error.identity == "unidentified record"


def test_sanitize_trims_description(raw_repo):
    assert sanitize(raw_repo(description="  spaced out  "))["description"] == "spaced out"
    assert sanitize(raw_repo(description="   "))["description"] is None
    assert sanitize(raw_repo(description=None))["description"] is None
    assert sanitize(raw_repo(description=12))["description"] is None


def test_sanitize_clamps_counters(raw_repo):
    raw = raw_repo(stargazers_count=-3, forks_count=2.0, size=-1)
    del raw["watchers_count"]
    sanitized = sanitize(raw)
    assert sanitized["stargazers_count"] == 0
    assert sanitized["forks_count"] == 2
    assert sanitized["watchers_count"] == 0
    assert sanitized["size"] == 0


def test_sanitize_filters_topics(raw_repo):
    assert sanitize(raw_repo(topics=["python", None, 3, "cli"]))["topics"] == ["python", "cli"]
    assert sanitize(raw_repo(topics="python"))["topics"] == []
    raw = raw_repo()
    del raw["topics"]
    assert sanitize(raw)["topics"] == []


def test_sanitize_does_not_mutate_input(raw_repo):
    raw = raw_repo(description="  x  ")
    sanitize(raw)
    assert raw["description"] == "  x  "


@pytest.mark.parametrize("field, value", [
    ("updated_at", "not-a-date"),
    ("created_at", ""),
    ("created_at", "2024-13-01T00:00:00Z"),
])
def test_unparseable_timestamp_is_invalid(field, value):
    result = validate(make_raw_repo(**{field: value}))
    assert not result.ok
    assert f"'{field}' must be a timestamp" in result.error.reason


def test_timestamp_with_offset_is_valid(raw_repo):
    assert is_valid(raw_repo(updated_at="2024-05-30T14:00:00+02:00"))


def test_sanitize_zeroes_non_finite_counters(raw_repo):
    sanitized = sanitize(raw_repo(stargazers_count=float("nan"), forks_count=float("inf"), size=float("-inf")))
    assert sanitized["stargazers_count"] == 0
    assert sanitized["forks_count"] == 0
    assert sanitized["size"] == 0
