"""Domain models for repositories in their internal (transformed) shape.

`Project` is what the rest of the application works with once a raw GitHub
repository record has been validated and sanitized.
"""

from datetime import datetime, timezone
from typing import Dict, Optional, Tuple
from dataclasses import dataclass, field


def parse_github_datetime(value: str) -> datetime:
    """Parses GitHub's ISO-8601 timestamps ('2024-01-01T00:00:00Z') as aware UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class ProjectOwner:
    """Owner of a repository (user or organization)."""
    login: str
    id: Optional[int] = None
    avatar_url: Optional[str] = None
    url: Optional[str] = None
    type: Optional[str] = None  # 'User' | 'Organization'


@dataclass(frozen=True)
class ProjectLicense:
    key: str
    name: str
    spdx_id: Optional[str] = None


@dataclass(frozen=True)
class Project:
    """Entity representing a repository after validation and sanitizing."""
    id: str
    name: str
    full_name: str
    url: str
    created_at: str
    updated_at: str
    owner: ProjectOwner
    description: Optional[str] = None
    language: Optional[str] = None
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    size: int = 0  # KB, as reported by GitHub
    pushed_at: Optional[str] = None
    clone_url: Optional[str] = None
    ssh_url: Optional[str] = None
    topics: Tuple[str, ...] = ()
    is_private: bool = False
    is_fork: bool = False
    is_archived: bool = False
    is_disabled: bool = False
    default_branch: Optional[str] = None
    license: Optional[ProjectLicense] = None

    @property
    def updated(self) -> datetime:
        return parse_github_datetime(self.updated_at)

    @property
    def created(self) -> datetime:
        return parse_github_datetime(self.created_at)


@dataclass(frozen=True)
class LanguageStat:
    """Per-language tally within a collection of projects."""
    count: int = 0
    bytes: int = 0


@dataclass(frozen=True)
class AggregateStats:
    """Statistics derived from a collection of projects. Never cached."""
    total_repos: int = 0
    public_repos: int = 0
    private_repos: int = 0
    forked_repos: int = 0
    original_repos: int = 0
    archived_repos: int = 0
    total_stars: int = 0
    total_forks: int = 0
    total_watchers: int = 0
    total_size: int = 0
    recently_active: int = 0
    languages: Dict[str, LanguageStat] = field(default_factory=dict)
    top_language: Optional[str] = None
    average_stars: int = 0


@dataclass(frozen=True)
class ConnectionStatus:
    """Result of probing the API with the configured token."""
    success: bool
    user: Optional[dict] = None
    error: Optional[str] = None
