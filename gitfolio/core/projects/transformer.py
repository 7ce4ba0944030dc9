"""Maps validated GitHub repository records onto the internal `Project` model."""

import logging
from typing import Any, Iterable, List, Mapping, Optional

from gitfolio.core.projects.validation import sanitize, validate
from gitfolio.domain.models.common import RawRepository
from gitfolio.domain.models.project import Project, ProjectLicense, ProjectOwner

logger = logging.getLogger(__name__)


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _owner(raw_owner: Mapping[str, Any]) -> ProjectOwner:
    owner_id = raw_owner.get("id")
    return ProjectOwner(
        login=raw_owner["login"],
        id=owner_id if isinstance(owner_id, int) and not isinstance(owner_id, bool) else None,
        avatar_url=_optional_str(raw_owner.get("avatar_url")),
        url=_optional_str(raw_owner.get("html_url")),
        type=_optional_str(raw_owner.get("type")),
    )


def _license(raw_license: Any) -> Optional[ProjectLicense]:
    if not isinstance(raw_license, Mapping) or not isinstance(raw_license.get("key"), str):
        return None
    return ProjectLicense(
        key=raw_license["key"],
        name=str(raw_license.get("name") or raw_license["key"]),
        spdx_id=_optional_str(raw_license.get("spdx_id")),
    )


def transform_repository(raw: RawRepository) -> Project:
    """Validates, sanitizes and converts one raw repository.

    Raises:
        InvalidRecordError: If the record fails the required-shape check.
    """
    record = sanitize(validate(raw).unwrap())
    repo_id = record["id"]
    return Project(
        id=str(int(repo_id)) if float(repo_id).is_integer() else str(repo_id),
        name=record["name"],
        full_name=record["full_name"],
        description=record["description"],
        language=_optional_str(record.get("language")),
        stars=record["stargazers_count"],
        forks=record["forks_count"],
        watchers=record["watchers_count"],
        size=record["size"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
        pushed_at=_optional_str(record.get("pushed_at")),
        url=record["html_url"],
        clone_url=_optional_str(record.get("clone_url")),
        ssh_url=_optional_str(record.get("ssh_url")),
        topics=tuple(record["topics"]),
        is_private=record["private"],
        is_fork=bool(record.get("fork", False)),
        is_archived=bool(record.get("archived", False)),
        is_disabled=bool(record.get("disabled", False)),
        default_branch=_optional_str(record.get("default_branch")),
        owner=_owner(record["owner"]),
        license=_license(record.get("license")),
    )


def transform_repositories(raws: Iterable[RawRepository]) -> List[Project]:
    """Transforms a listing strictly: the first invalid record aborts with its error."""
    projects = [transform_repository(raw) for raw in raws]
    logger.debug(f"Transformed {len(projects)} repositories")
    return projects
