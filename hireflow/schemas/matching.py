from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hireflow.core.matching_config import get_matching_value

WEIGHT_MIN = int(get_matching_value("skills.weight_min", 1))
WEIGHT_MAX = int(get_matching_value("skills.weight_max", 10))


class SkillRequirement(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    weight: int = Field(ge=WEIGHT_MIN, le=WEIGHT_MAX)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Skill name cannot be empty")
        return stripped


class MatchBreakdown(BaseModel):
    """Weighted coverage of a job's skill requirements by one candidate.

    Serialized with camelCase aliases, which is the shape persisted in the
    ``matches.breakdown`` column.
    """

    model_config = ConfigDict(populate_by_name=True)

    score: int = Field(default=0, ge=0, le=100)
    matched: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    total_skills: int = Field(default=0, alias="totalSkills")
    matched_skills: int = Field(default=0, alias="matchedSkills")
    total_weight: int = Field(default=0, alias="totalWeight")
    matched_weight: int = Field(default=0, alias="matchedWeight")

    def to_breakdown(self) -> dict:
        return self.model_dump(by_alias=True)


class SkillFrequency(BaseModel):
    skill: str
    count: int
    percentage: int


class ScoreRequest(BaseModel):
    candidate_skills: list[str] | None = None
    job_skills: list[SkillRequirement] = Field(default_factory=list)


class ScoreResponse(BaseModel):
    score: int
    breakdown: MatchBreakdown


class MissingSkillsEntry(BaseModel):
    missing: list[str] = Field(default_factory=list)


class RecommendationsRequest(BaseModel):
    matches: list[MissingSkillsEntry] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=1, le=100)


class RecommendationsResponse(BaseModel):
    skills: list[SkillFrequency] = Field(default_factory=list)
