from __future__ import annotations

from typing import Any, Iterable, Mapping

from hireflow.core.matching_config import get_matching_value
from hireflow.matching.scorer import round_half_up
from hireflow.schemas.matching import SkillFrequency


def _missing_skills(match: Any) -> list[str]:
    if isinstance(match, Mapping):
        if "missing" in match:
            return list(match.get("missing") or [])
        breakdown = match.get("breakdown") or {}
        return list(breakdown.get("missing") or []) if isinstance(breakdown, Mapping) else []
    missing = getattr(match, "missing", None)
    if missing is None:
        breakdown = getattr(match, "breakdown", None)
        if isinstance(breakdown, Mapping):
            missing = breakdown.get("missing")
        else:
            missing = getattr(breakdown, "missing", None)
    return list(missing or [])


def aggregate_missing_skills(matches: Iterable[Any], limit: int | None = None) -> list[SkillFrequency]:
    """Rank the skills a candidate most often lacks across their job matches.

    Percentages are relative to the number of matches, including matches with
    nothing missing. Ties keep first-encountered order.
    """
    items = list(matches)
    if not items:
        return []
    top_n = limit if limit is not None else int(get_matching_value("recommendations.limit", 10))

    # Insertion order plus a stable sort keeps ties in first-seen order.
    counts: dict[str, int] = {}
    for match in items:
        for skill in _missing_skills(match):
            counts[skill] = counts.get(skill, 0) + 1

    ranked = sorted(counts.items(), key=lambda entry: entry[1], reverse=True)
    total = len(items)
    return [
        SkillFrequency(skill=skill, count=count, percentage=round_half_up(count / total * 100))
        for skill, count in ranked[:top_n]
    ]
