from __future__ import annotations

from fastapi import APIRouter

from hireflow.matching.recommendations import aggregate_missing_skills
from hireflow.matching.scorer import calculate_match_score
from hireflow.schemas.matching import (
    RecommendationsRequest,
    RecommendationsResponse,
    ScoreRequest,
    ScoreResponse,
)

router = APIRouter()


@router.post("/matching/score", response_model=ScoreResponse)
def score_candidate(payload: ScoreRequest):
    result = calculate_match_score(payload.candidate_skills, payload.job_skills)
    return ScoreResponse(score=result.score, breakdown=result)


@router.post("/matching/recommendations", response_model=RecommendationsResponse)
def recommend_skills(payload: RecommendationsRequest):
    return RecommendationsResponse(skills=aggregate_missing_skills(payload.matches, limit=payload.limit))
