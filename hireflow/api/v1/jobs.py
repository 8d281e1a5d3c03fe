from __future__ import annotations

from fastapi import APIRouter, HTTPException

from hireflow.schemas.recruiting import (
    JobCreateRequest,
    JobDetailResponse,
    JobResponse,
    JobStatusUpdateRequest,
    RescoreResponse,
)
from hireflow.services import recruiting_service
from hireflow.services.errors import RecruitingError
from hireflow.services.parse_resume_service import rescore_job

router = APIRouter()


def _raise_recruiting_error(exc: RecruitingError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/employers/{employer_id}/jobs", response_model=JobResponse, status_code=201)
def create_job(employer_id: int, payload: JobCreateRequest):
    try:
        return recruiting_service.create_job(employer_id, payload)
    except RecruitingError as exc:
        _raise_recruiting_error(exc)


@router.get("/employers/{employer_id}/jobs", response_model=list[JobResponse])
def list_jobs(employer_id: int):
    try:
        return recruiting_service.list_employer_jobs(employer_id)
    except RecruitingError as exc:
        _raise_recruiting_error(exc)


@router.get("/jobs/{job_id}", response_model=JobDetailResponse)
def job_details(job_id: int):
    try:
        return recruiting_service.get_job_details(job_id)
    except RecruitingError as exc:
        _raise_recruiting_error(exc)


@router.patch("/jobs/{job_id}/status", response_model=JobResponse)
def update_job_status(job_id: int, payload: JobStatusUpdateRequest):
    try:
        return recruiting_service.set_job_status(job_id, payload.status)
    except RecruitingError as exc:
        _raise_recruiting_error(exc)


@router.post("/jobs/{job_id}/rescore", response_model=RescoreResponse)
def rescore(job_id: int):
    try:
        return rescore_job(job_id)
    except RecruitingError as exc:
        _raise_recruiting_error(exc)
