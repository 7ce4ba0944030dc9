"""Human-readable renderings of project attributes."""

import math
from datetime import datetime, timezone
from typing import Optional

from gitfolio.domain.models.project import Project, parse_github_datetime

SECONDS_PER_DAY = 24 * 60 * 60


def format_repository_size(size_kb: int) -> str:
    """GitHub reports size in KB; render it as KB, MB or GB."""
    if size_kb < 1024:
        return f"{size_kb} KB"
    if size_kb < 1024 * 1024:
        return f"{size_kb / 1024:.1f} MB"
    return f"{size_kb / (1024 * 1024):.1f} GB"


def format_relative_time(timestamp: str, now: Optional[datetime] = None) -> str:
    """Renders an ISO timestamp as '3 days ago', '2 weeks ago', ...

    Partial days count as a full day.
    """
    now = now or datetime.now(timezone.utc)
    elapsed = abs((now - parse_github_datetime(timestamp)).total_seconds())
    days = math.ceil(elapsed / SECONDS_PER_DAY)

    if days == 1:
        return "1 day ago"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 365:
        return f"{days // 30} months ago"
    return f"{days // 365} years ago"


def get_activity_level(project: Project, now: Optional[datetime] = None) -> str:
    """'high' if updated within a week, 'medium' within 30 days, otherwise 'low'."""
    now = now or datetime.now(timezone.utc)
    days_since_update = (now - project.updated).total_seconds() / SECONDS_PER_DAY
    if days_since_update <= 7:
        return "high"
    if days_since_update <= 30:
        return "medium"
    return "low"
