from __future__ import annotations

import logging
from typing import Any

from hireflow.ai.resume_extractor import ResumeExtractionError, extract_resume_fields
from hireflow.matching.scorer import calculate_match_score
from hireflow.parsing.parse import parse_document
from hireflow.schemas.recruiting import ParsedResume, ParseResumeResponse, RescoreResponse
from hireflow.services.errors import NotFoundError, ParseResumeError, RecruitingError
from hireflow.storage import db
from hireflow.storage.db import StorageError
from hireflow.storage.files import FileStorageError, resolve_resume_path

logger = logging.getLogger(__name__)


def _score_and_store(job: dict[str, Any], resume_id: int, skills: list[str]) -> bool:
    """Upsert the match for one (job, resume) pair. Returns True when it was shortlisted."""
    result = calculate_match_score(skills, job.get("skills") or [])
    try:
        db.upsert_match(
            job_id=job["id"],
            resume_id=resume_id,
            score=result.score,
            breakdown=result.to_breakdown(),
        )
    except StorageError as exc:
        logger.error("match_upsert_failed job_id=%s resume_id=%s: %s", job["id"], resume_id, exc)

    if result.score < int(job.get("threshold") or 0):
        return False
    try:
        db.upsert_shortlist(job_id=job["id"], resume_id=resume_id, status="shortlisted")
    except StorageError as exc:
        logger.error("shortlist_upsert_failed job_id=%s resume_id=%s: %s", job["id"], resume_id, exc)
        return False
    return True


def _extract_text(resume: dict[str, Any]) -> str:
    try:
        path = resolve_resume_path(resume["file_path"])
        document = parse_document(path)
    except (FileStorageError, FileNotFoundError, NotImplementedError) as exc:
        raise ParseResumeError(f"Failed to download resume: {exc}", code="download_failed") from exc
    for warning in document.parsing_warnings:
        logger.warning("resume_text_warning resume_id=%s: %s", resume["id"], warning)
    if not document.has_text:
        raise ParseResumeError("No extractable text found in resume.", status_code=422, code="empty_text")
    return document.text


def parse_resume(resume_id: int) -> ParseResumeResponse:
    """Extract fields from a stored resume, then match it against every active job.

    The resume is marked ``failed`` when text extraction or the AI call fails.
    Per-job persistence failures are logged and do not abort the run.
    """
    resume = db.get_resume(resume_id)
    if not resume:
        raise NotFoundError(f"Resume not found: {resume_id}")

    try:
        text = _extract_text(resume)
        parsed = extract_resume_fields(text)
        db.update_resume_parsed(resume_id, parsed.model_dump())
    except ResumeExtractionError as exc:
        logger.exception("parse_resume_failed resume_id=%s code=%s", resume_id, exc.code)
        db.update_resume_status(resume_id, "failed")
        status_code = 503 if exc.code == "ai_disabled" else 502
        raise ParseResumeError(str(exc), status_code=status_code, code=exc.code) from exc
    except ParseResumeError as exc:
        logger.warning("parse_resume_failed resume_id=%s code=%s: %s", resume_id, exc.code, exc)
        db.update_resume_status(resume_id, "failed")
        raise
    except StorageError as exc:
        logger.exception("parse_resume_failed resume_id=%s", resume_id)
        db.update_resume_status(resume_id, "failed")
        raise ParseResumeError(f"Failed to update resume: {exc}", code="storage_failed") from exc

    jobs: list[dict[str, Any]] = []
    try:
        jobs = db.list_active_jobs()
    except StorageError as exc:
        logger.error("active_jobs_fetch_failed resume_id=%s: %s", resume_id, exc)

    shortlisted = sum(1 for job in jobs if _score_and_store(job, resume_id, parsed.skills))

    candidate = db.get_user(resume["candidate_id"])
    if candidate:
        try:
            db.insert_audit_log(
                user_id=candidate["id"],
                action="resume_parsed",
                metadata={"resumeId": resume_id, "parsedData": parsed.model_dump()},
            )
        except StorageError as exc:
            logger.error("audit_log_insert_failed resume_id=%s: %s", resume_id, exc)

    logger.info(
        "resume_parsed resume_id=%s matches=%s shortlisted=%s",
        resume_id,
        len(jobs),
        shortlisted,
    )
    return ParseResumeResponse(success=True, parsed=parsed, matches_created=len(jobs))


def parse_resume_in_background(resume_id: int) -> None:
    try:
        parse_resume(resume_id)
    except RecruitingError as exc:
        logger.warning("background_parse_failed resume_id=%s status=%s: %s", resume_id, exc.status_code, exc)


def rescore_job(job_id: int) -> RescoreResponse:
    """Recompute matches of every processed resume against one job."""
    job = db.get_job(job_id)
    if not job:
        raise NotFoundError(f"Job not found: {job_id}")
    if job.get("status") != "active":
        raise RecruitingError("Only active jobs can be rescored.", status_code=409)

    updated = 0
    shortlisted = 0
    for resume in db.list_processed_resumes():
        if not resume.get("parsed"):
            continue
        parsed = ParsedResume.model_validate(resume["parsed"])
        if _score_and_store(job, resume["id"], parsed.skills):
            shortlisted += 1
        updated += 1

    logger.info("job_rescored job_id=%s matches=%s shortlisted=%s", job_id, updated, shortlisted)
    return RescoreResponse(job_id=job_id, matches_updated=updated, shortlisted=shortlisted)
