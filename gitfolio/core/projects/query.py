"""Sorting and filtering over project collections.

Sorting is stable in both directions: projects that compare equal keep their
input order. Filters are independent predicates combined with AND, so the
order in which they are applied does not change the result.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from gitfolio.domain.models.project import Project

SORT_KEYS: Dict[str, Callable[[Project], Any]] = {
    "name": lambda p: p.name.lower(),
    "stars": lambda p: p.stars,
    "forks": lambda p: p.forks,
    "updated": lambda p: p.updated,
    "created": lambda p: p.created,
    "size": lambda p: p.size,
}
SORT_DIRECTIONS = ("asc", "desc")
REPOSITORY_TYPES = ("all", "public", "private", "forks", "original", "archived")


def sort_repositories(projects: Iterable[Project], sort_by: str, direction: str = "desc") -> List[Project]:
    """Returns a new list of projects ordered by `sort_by`.

    Args:
        projects: Projects to order; not modified.
        sort_by: One of 'name' (case-insensitive), 'stars', 'forks', 'updated', 'created', 'size'.
        direction: 'asc' or 'desc'.

    Raises:
        ValueError: For an unknown sort key or direction.
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key '{sort_by}'. Expected one of: {', '.join(SORT_KEYS)}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction '{direction}'. Expected 'asc' or 'desc'")
    # sorted(reverse=True) keeps equal elements in their original order
    return sorted(projects, key=SORT_KEYS[sort_by], reverse=direction == "desc")


@dataclass(frozen=True)
class RepositoryFilters:
    """Optional predicates; a field left as None matches everything."""
    language: Optional[str] = None
    type: Optional[str] = None
    min_stars: Optional[int] = None
    max_stars: Optional[int] = None
    has_topics: Optional[bool] = None
    search_term: Optional[str] = None

    def __post_init__(self):
        if self.type is not None and self.type not in REPOSITORY_TYPES:
            raise ValueError(f"Unknown repository type '{self.type}'. Expected one of: {', '.join(REPOSITORY_TYPES)}")


def _matches_type(project: Project, repo_type: str) -> bool:
    if repo_type == "public":
        return not project.is_private
    if repo_type == "private":
        return project.is_private
    if repo_type == "forks":
        return project.is_fork
    if repo_type == "original":
        return not project.is_fork
    if repo_type == "archived":
        return project.is_archived
    return True


def searchable_text(project: Project) -> str:
    return " ".join([project.name, project.description or "", project.language or "", *project.topics]).lower()


def matches_filters(project: Project, filters: RepositoryFilters) -> bool:
    if filters.language and project.language != filters.language:
        return False
    if filters.type and not _matches_type(project, filters.type):
        return False
    if filters.min_stars is not None and project.stars < filters.min_stars:
        return False
    if filters.max_stars is not None and project.stars > filters.max_stars:
        return False
    if filters.has_topics is not None and bool(project.topics) != filters.has_topics:
        return False
    if filters.search_term and filters.search_term.lower() not in searchable_text(project):
        return False
    return True


def filter_repositories(projects: Iterable[Project], filters: RepositoryFilters) -> List[Project]:
    """Keeps the projects matching every predicate set in `filters`, in input order."""
    return [project for project in projects if matches_filters(project, filters)]
