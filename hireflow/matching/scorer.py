from __future__ import annotations

import math
from typing import Any, Iterable, Mapping, Sequence

from hireflow.schemas.matching import MatchBreakdown


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_skill(value: str) -> str:
    return (value or "").strip().lower()


def _requirement_parts(requirement: Any) -> tuple[str, int]:
    if isinstance(requirement, Mapping):
        return str(requirement.get("name") or ""), int(requirement.get("weight") or 0)
    return str(getattr(requirement, "name", "") or ""), int(getattr(requirement, "weight", 0) or 0)


def _skill_matches(candidate_skills: Iterable[str], requirement: str) -> bool:
    # Bidirectional substring check: "java" matches "javascript" and vice versa.
    return any(
        skill == requirement or requirement in skill or skill in requirement
        for skill in candidate_skills
    )


def calculate_match_score(
    candidate_skills: Sequence[str] | None,
    job_skills: Sequence[Any] | None,
) -> MatchBreakdown:
    """Score a candidate's extracted skills against a job's weighted requirements.

    ``job_skills`` items may be ``SkillRequirement`` models or plain mappings
    with ``name`` and ``weight``. Matched and missing lists keep the original
    requirement names in requirement order.
    """
    requirements = [_requirement_parts(item) for item in (job_skills or [])]
    total_weight = sum(weight for _name, weight in requirements)

    if not candidate_skills:
        return MatchBreakdown(
            score=0,
            matched=[],
            missing=[name for name, _weight in requirements],
            total_skills=len(requirements),
            matched_skills=0,
            total_weight=total_weight,
            matched_weight=0,
        )

    normalized_candidate = [normalize_skill(skill) for skill in candidate_skills]

    matched_weight = 0
    matched: list[str] = []
    missing: list[str] = []
    for name, weight in requirements:
        if _skill_matches(normalized_candidate, normalize_skill(name)):
            matched_weight += weight
            matched.append(name)
        else:
            missing.append(name)

    score = round_half_up(matched_weight / total_weight * 100) if total_weight > 0 else 0

    return MatchBreakdown(
        score=score,
        matched=matched,
        missing=missing,
        total_skills=len(requirements),
        matched_skills=len(matched),
        total_weight=total_weight,
        matched_weight=matched_weight,
    )
