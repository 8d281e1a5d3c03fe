from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from hireflow.core.security import check_api_key
from hireflow.schemas.recruiting import AuditLogEntry, UserCreateRequest, UserResponse
from hireflow.services import recruiting_service
from hireflow.services.errors import RecruitingError

router = APIRouter()


def _auth(x_api_key: str | None = Header(default=None, alias="X-API-Key")):
    check_api_key(x_api_key)


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(payload: UserCreateRequest):
    try:
        return recruiting_service.register_user(payload)
    except RecruitingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: int):
    try:
        return recruiting_service.get_user(user_id)
    except RecruitingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/audit-logs", response_model=list[AuditLogEntry])
def audit_logs(
    limit: int = Query(default=50, ge=1, le=500),
    user_id: int | None = Query(default=None),
    _: None = Depends(_auth),
):
    return recruiting_service.list_audit_logs(limit=limit, user_id=user_id)
