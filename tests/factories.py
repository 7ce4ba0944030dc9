"""Builders for GitHub payloads and projects shared by the test suite."""

import copy
from datetime import datetime, timedelta, timezone

from gitfolio.core.projects.transformer import transform_repository
from gitfolio.domain.models.project import Project

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

BASE_REPOSITORY = {
    "id": 1296269,
    "name": "Hello-World",
    "full_name": "octocat/Hello-World",
    "owner": {
        "login": "octocat",
        "id": 1,
        "avatar_url": "https://github.com/images/error/octocat_happy.gif",
        "html_url": "https://github.com/octocat",
        "type": "User",
    },
    "private": False,
    "html_url": "https://github.com/octocat/Hello-World",
    "description": "This your first repo!",
    "fork": False,
    "clone_url": "https://github.com/octocat/Hello-World.git",
    "ssh_url": "git@github.com:octocat/Hello-World.git",
    "language": "Python",
    "stargazers_count": 80,
    "watchers_count": 80,
    "forks_count": 9,
    "size": 108,
    "default_branch": "main",
    "topics": ["octocat", "api"],
    "archived": False,
    "disabled": False,
    "license": {"key": "mit", "name": "MIT License", "spdx_id": "MIT"},
    "created_at": "2011-01-26T19:01:12Z",
    "updated_at": "2024-05-30T12:00:00Z",
    "pushed_at": "2024-05-30T12:00:00Z",
}


def iso(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def days_ago(days: float, now: datetime = NOW) -> str:
    return iso(now - timedelta(days=days))


def make_raw_repo(**overrides):
    """Returns a raw GitHub repository record with the given fields replaced."""
    raw = copy.deepcopy(BASE_REPOSITORY)
    raw.update(overrides)
    return raw


def make_project(name: str = "Hello-World", **overrides) -> Project:
    """Builds a Project through the real transformation pipeline."""
    overrides.setdefault("full_name", f"octocat/{name}")
    overrides.setdefault("html_url", f"https://github.com/octocat/{name}")
    return transform_repository(make_raw_repo(name=name, **overrides))
