from fastapi import APIRouter, BackgroundTasks, File, HTTPException, Query, Request, Response, UploadFile

from hireflow.core.config import settings
from hireflow.core.rate_limit import rate_limit
from hireflow.schemas.recruiting import (
    CandidateMatchesResponse,
    ParseResumeResponse,
    ResumeDetailResponse,
    ResumeResponse,
    SkillRecommendationsResponse,
)
from hireflow.services import recruiting_service
from hireflow.services.errors import RecruitingError
from hireflow.services.parse_resume_service import parse_resume, parse_resume_in_background
from hireflow.storage.files import FileStorageError

router = APIRouter()


def _raise_http(exc: RecruitingError | FileStorageError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/candidates/{candidate_id}/resumes", response_model=ResumeResponse, status_code=201)
@rate_limit()
async def upload_resume(
    request: Request,
    candidate_id: int,
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
):
    # One byte past the limit is enough to detect oversized uploads.
    content = await file.read(settings.resume_max_bytes + 1)
    try:
        resume = recruiting_service.upload_resume(
            candidate_id,
            filename=file.filename or "",
            content_type=file.content_type,
            content=content,
        )
    except (RecruitingError, FileStorageError) as exc:
        _raise_http(exc)
    if settings.auto_parse_on_upload:
        background_tasks.add_task(parse_resume_in_background, resume.id)
    return resume


@router.get("/candidates/{candidate_id}/resumes", response_model=list[ResumeResponse])
def list_resumes(candidate_id: int):
    try:
        return recruiting_service.list_candidate_resumes(candidate_id)
    except RecruitingError as exc:
        _raise_http(exc)


@router.get("/candidates/{candidate_id}/matches", response_model=CandidateMatchesResponse)
def list_matches(candidate_id: int):
    try:
        return recruiting_service.list_candidate_matches(candidate_id)
    except RecruitingError as exc:
        _raise_http(exc)


@router.get("/candidates/{candidate_id}/recommendations", response_model=SkillRecommendationsResponse)
def skill_recommendations(candidate_id: int, limit: int | None = Query(default=None, ge=1, le=50)):
    try:
        return recruiting_service.candidate_skill_recommendations(candidate_id, limit=limit)
    except RecruitingError as exc:
        _raise_http(exc)


@router.post("/resumes/{resume_id}/parse", response_model=ParseResumeResponse)
@rate_limit()
def parse(request: Request, resume_id: int):
    try:
        return parse_resume(resume_id)
    except RecruitingError as exc:
        _raise_http(exc)


@router.get("/resumes/{resume_id}", response_model=ResumeDetailResponse)
def resume_details(resume_id: int, employer_id: int | None = Query(default=None)):
    try:
        return recruiting_service.get_resume_details(resume_id, employer_id=employer_id)
    except RecruitingError as exc:
        _raise_http(exc)


@router.get("/resumes/{resume_id}/download")
def download(resume_id: int):
    try:
        resume, content = recruiting_service.download_resume(resume_id)
    except (RecruitingError, FileStorageError) as exc:
        _raise_http(exc)
    filename = resume["file_name"].replace('"', "")
    return Response(
        content=content,
        media_type=resume.get("content_type") or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
