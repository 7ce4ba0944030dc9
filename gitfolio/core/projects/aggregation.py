"""Statistics over collections of projects.

All functions recompute from the projects passed in; nothing is cached.
Inputs are expected to be validated `Project`s. `calculate_total_stats_from_raw`
is the single lenient entry point: it drops invalid raw records instead of
failing the whole computation.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence

from gitfolio.core.projects.transformer import transform_repository
from gitfolio.core.projects.validation import validate
from gitfolio.domain.models.common import RawRepository
from gitfolio.domain.models.project import AggregateStats, LanguageStat, Project

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_WINDOW = timedelta(days=30)


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_language_stats(projects: Iterable[Project]) -> Dict[str, LanguageStat]:
    """Counts projects and sums their size per primary language.

    The result is ordered by count descending; languages with equal counts
    keep the order in which they were first seen.
    """
    counts: Dict[str, int] = {}
    sizes: Dict[str, int] = {}
    for project in projects:
        if not project.language:
            continue
        counts[project.language] = counts.get(project.language, 0) + 1
        sizes[project.language] = sizes.get(project.language, 0) + project.size

    ordered = sorted(counts, key=lambda language: counts[language], reverse=True)
    return {language: LanguageStat(count=counts[language], bytes=sizes[language]) for language in ordered}


def is_recently_active(project: Project, now: datetime, window: timedelta = RECENT_ACTIVITY_WINDOW) -> bool:
    return now - project.updated <= window


def calculate_total_stats(projects: Sequence[Project], now: Optional[datetime] = None) -> AggregateStats:
    """Computes totals, language histogram and activity for a collection.

    Args:
        projects: Validated projects.
        now: Reference time for the recent-activity window (defaults to current UTC time).
    """
    now = now or datetime.now(timezone.utc)
    projects = list(projects)
    languages = calculate_language_stats(projects)
    total_stars = sum(p.stars for p in projects)

    return AggregateStats(
        total_repos=len(projects),
        public_repos=sum(1 for p in projects if not p.is_private),
        private_repos=sum(1 for p in projects if p.is_private),
        forked_repos=sum(1 for p in projects if p.is_fork),
        original_repos=sum(1 for p in projects if not p.is_fork),
        archived_repos=sum(1 for p in projects if p.is_archived),
        total_stars=total_stars,
        total_forks=sum(p.forks for p in projects),
        total_watchers=sum(p.watchers for p in projects),
        total_size=sum(p.size for p in projects),
        recently_active=sum(1 for p in projects if is_recently_active(p, now)),
        languages=languages,
        top_language=next(iter(languages), None),
        average_stars=_round_half_up(total_stars / len(projects)) if projects else 0,
    )


def calculate_total_stats_from_raw(raws: Iterable[RawRepository], now: Optional[datetime] = None) -> AggregateStats:
    """Lenient variant for unvalidated listings: invalid records are skipped and logged."""
    projects: List[Project] = []
    dropped = 0
    for raw in raws:
        result = validate(raw)
        if not result.ok:
            dropped += 1
            logger.warning(f"Skipping repository in statistics: {result.error}")
            continue
        projects.append(transform_repository(result.record))
    if dropped:
        logger.warning(f"Dropped {dropped} invalid repositories while computing statistics")
    return calculate_total_stats(projects, now=now)
