from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from hireflow.core.matching_config import get_matching_value
from hireflow.schemas.matching import MatchBreakdown, SkillFrequency, SkillRequirement

UserRole = Literal["employer", "candidate"]
JobStatus = Literal["active", "closed"]
ResumeStatus = Literal["pending", "processed", "failed"]
ShortlistStatus = Literal["shortlisted", "rejected", "hired"]

TITLE_MIN_LENGTH = int(get_matching_value("jobs.title_min_length", 3))
DESCRIPTION_MIN_LENGTH = int(get_matching_value("jobs.description_min_length", 50))
THRESHOLD_MIN = int(get_matching_value("jobs.threshold_min", 0))
THRESHOLD_MAX = int(get_matching_value("jobs.threshold_max", 100))
DEFAULT_THRESHOLD = int(get_matching_value("jobs.default_threshold", 70))


class UserCreateRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    role: UserRole


class UserResponse(BaseModel):
    id: int
    full_name: str
    email: str
    role: UserRole
    created_at: datetime


class JobCreateRequest(BaseModel):
    title: str = Field(min_length=TITLE_MIN_LENGTH, max_length=200)
    description: str = Field(min_length=DESCRIPTION_MIN_LENGTH, max_length=20000)
    skills: list[SkillRequirement] = Field(min_length=1)
    min_experience: int = Field(default=0, ge=0)
    threshold: int = Field(default=DEFAULT_THRESHOLD, ge=THRESHOLD_MIN, le=THRESHOLD_MAX)


class JobStatusUpdateRequest(BaseModel):
    status: JobStatus


class JobResponse(BaseModel):
    id: int
    employer_id: int
    title: str
    description: str
    skills: list[SkillRequirement]
    min_experience: int
    threshold: int
    status: JobStatus
    created_at: datetime
    match_count: int = 0
    shortlist_count: int = 0


class ParsedResume(BaseModel):
    """Structured fields returned by the resume extraction tool call."""

    name: str
    email: str | None = None
    phone: str | None = None
    skills: list[str] = Field(default_factory=list)
    experience_years: float | None = None
    education: str | None = None
    summary: str | None = None


class ResumeResponse(BaseModel):
    id: int
    candidate_id: int
    file_name: str
    status: ResumeStatus
    parsed: ParsedResume | None = None
    created_at: datetime
    updated_at: datetime | None = None


class MatchResponse(BaseModel):
    job_id: int
    resume_id: int
    score: int
    breakdown: MatchBreakdown
    job_title: str | None = None
    candidate_name: str | None = None
    candidate_email: str | None = None
    shortlisted: bool = False
    updated_at: datetime | None = None


class ShortlistEntry(BaseModel):
    job_id: int
    resume_id: int
    status: ShortlistStatus
    created_at: datetime


class JobDetailResponse(BaseModel):
    job: JobResponse
    matches: list[MatchResponse] = Field(default_factory=list)
    shortlist: list[ShortlistEntry] = Field(default_factory=list)


class CandidateMatchesResponse(BaseModel):
    candidate_id: int
    matches: list[MatchResponse] = Field(default_factory=list)


class SkillRecommendationsResponse(BaseModel):
    candidate_id: int
    total_matches: int
    skills: list[SkillFrequency] = Field(default_factory=list)


class ResumeDetailResponse(BaseModel):
    resume: ResumeResponse
    candidate_name: str | None = None
    candidate_email: str | None = None
    matches: list[MatchResponse] = Field(default_factory=list)


class ParseResumeResponse(BaseModel):
    success: bool
    parsed: ParsedResume
    matches_created: int


class RescoreResponse(BaseModel):
    job_id: int
    matches_updated: int
    shortlisted: int


class AuditLogEntry(BaseModel):
    id: int
    user_id: int
    action: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
