from __future__ import annotations

import logging
from typing import Any

from hireflow.matching.recommendations import aggregate_missing_skills
from hireflow.schemas.recruiting import (
    AuditLogEntry,
    CandidateMatchesResponse,
    JobCreateRequest,
    JobDetailResponse,
    JobResponse,
    MatchResponse,
    ResumeDetailResponse,
    ResumeResponse,
    ShortlistEntry,
    SkillRecommendationsResponse,
    UserCreateRequest,
    UserResponse,
)
from hireflow.services.errors import NotFoundError, RecruitingError
from hireflow.services.parse_resume_service import rescore_job
from hireflow.storage import db
from hireflow.storage.files import read_resume_file, save_resume_file, validate_resume_upload

logger = logging.getLogger(__name__)


def _require_user(user_id: int, role: str) -> dict[str, Any]:
    user = db.get_user(user_id)
    if not user:
        raise NotFoundError("User profile not found")
    if user["role"] != role:
        raise RecruitingError(f"User {user_id} is not a {role}.", status_code=403)
    return user


def _require_job(job_id: int) -> dict[str, Any]:
    job = db.get_job(job_id)
    if not job:
        raise NotFoundError("Job not found")
    return job


def _require_resume(resume_id: int) -> dict[str, Any]:
    resume = db.get_resume(resume_id)
    if not resume:
        raise NotFoundError("Resume not found")
    return resume


# Users


def register_user(payload: UserCreateRequest) -> UserResponse:
    if db.get_user_by_email(payload.email):
        raise RecruitingError("A user with this email already exists.", status_code=409)
    user = db.create_user(full_name=payload.full_name.strip(), email=payload.email, role=payload.role)
    db.insert_audit_log(user_id=user["id"], action="user_registered", metadata={"role": payload.role})
    return UserResponse(**user)


def get_user(user_id: int) -> UserResponse:
    user = db.get_user(user_id)
    if not user:
        raise NotFoundError("User profile not found")
    return UserResponse(**user)


# Jobs


def create_job(employer_id: int, payload: JobCreateRequest) -> JobResponse:
    _require_user(employer_id, "employer")
    job = db.create_job(
        employer_id=employer_id,
        title=payload.title.strip(),
        description=payload.description.strip(),
        skills=[skill.model_dump() for skill in payload.skills],
        min_experience=payload.min_experience,
        threshold=payload.threshold,
    )
    db.insert_audit_log(user_id=employer_id, action="job_created", metadata={"jobId": job["id"]})
    logger.info("job_created job_id=%s employer_id=%s skills=%s", job["id"], employer_id, len(payload.skills))

    # Score candidates who were parsed before this job existed.
    rescore_job(job["id"])
    return JobResponse(**_require_job(job["id"]))


def list_employer_jobs(employer_id: int) -> list[JobResponse]:
    _require_user(employer_id, "employer")
    return [JobResponse(**job) for job in db.list_jobs_for_employer(employer_id)]


def get_job_details(job_id: int) -> JobDetailResponse:
    job = _require_job(job_id)
    return JobDetailResponse(
        job=JobResponse(**job),
        matches=[MatchResponse(**match) for match in db.list_matches_for_job(job_id)],
        shortlist=[ShortlistEntry(**entry) for entry in db.list_shortlist_for_job(job_id)],
    )


def set_job_status(job_id: int, status: str) -> JobResponse:
    _require_job(job_id)
    job = db.update_job_status(job_id, status)
    logger.info("job_status_changed job_id=%s status=%s", job_id, status)
    return JobResponse(**job)  # type: ignore[arg-type]


# Candidates and resumes


def upload_resume(candidate_id: int, *, filename: str, content_type: str | None, content: bytes) -> ResumeResponse:
    _require_user(candidate_id, "candidate")
    extension = validate_resume_upload(filename=filename, content_type=content_type, content=content)
    file_path = save_resume_file(user_id=candidate_id, filename=filename, extension=extension, content=content)
    resume = db.create_resume(
        candidate_id=candidate_id,
        file_path=file_path,
        file_name=filename or f"resume.{extension}",
        content_type=content_type,
    )
    logger.info("resume_uploaded resume_id=%s candidate_id=%s bytes=%s", resume["id"], candidate_id, len(content))
    return ResumeResponse(**resume)


def list_candidate_resumes(candidate_id: int) -> list[ResumeResponse]:
    _require_user(candidate_id, "candidate")
    return [ResumeResponse(**resume) for resume in db.list_resumes_for_candidate(candidate_id)]


def list_candidate_matches(candidate_id: int) -> CandidateMatchesResponse:
    _require_user(candidate_id, "candidate")
    matches = [MatchResponse(**match) for match in db.list_matches_for_candidate(candidate_id)]
    return CandidateMatchesResponse(candidate_id=candidate_id, matches=matches)


def candidate_skill_recommendations(candidate_id: int, limit: int | None = None) -> SkillRecommendationsResponse:
    _require_user(candidate_id, "candidate")
    matches = db.list_matches_for_candidate(candidate_id)
    return SkillRecommendationsResponse(
        candidate_id=candidate_id,
        total_matches=len(matches),
        skills=aggregate_missing_skills(matches, limit=limit),
    )


def get_resume_details(resume_id: int, employer_id: int | None = None) -> ResumeDetailResponse:
    resume = _require_resume(resume_id)
    if employer_id is not None:
        _require_user(employer_id, "employer")
    matches = db.list_matches_for_resume(resume_id, employer_id=employer_id)
    if employer_id is not None and not matches:
        raise NotFoundError("Resume not found")
    candidate = db.get_user(resume["candidate_id"]) or {}
    return ResumeDetailResponse(
        resume=ResumeResponse(**resume),
        candidate_name=candidate.get("full_name"),
        candidate_email=candidate.get("email"),
        matches=[MatchResponse(**match) for match in matches],
    )


def download_resume(resume_id: int) -> tuple[dict[str, Any], bytes]:
    resume = _require_resume(resume_id)
    return resume, read_resume_file(resume["file_path"])


def list_audit_logs(limit: int, user_id: int | None = None) -> list[AuditLogEntry]:
    return [AuditLogEntry(**entry) for entry in db.list_audit_logs(limit=limit, user_id=user_id)]
