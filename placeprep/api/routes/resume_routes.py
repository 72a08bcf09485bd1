"""
Resume Review Routes

POST /resume/analyze - ATS review without saving
POST /resume/review - ATS review, stored in resume_reviews
GET /resume/review - Latest stored reviews
POST /resume/match - Compare resume with a job description
GET /resume/health - Database / Gemini / analyser checks
"""

import logging

from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from placeprep.core.auth import get_current_user
from placeprep.services.gemini_client import LLMError
from placeprep.services.resume_service import (
    get_resume_reviewer, list_reviews, run_health_checks, ResumeValidationError, UserNotFoundError
)
from placeprep.schemas.schemas import (
    ResumeTextRequest, ResumeMatchRequest, ResumeAnalyzeResponse, ResumeReviewResponse,
    ResumeReviewListResponse, ResumeMatchResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resume", tags=["Resume Review"])


@router.post("/analyze", response_model=ResumeAnalyzeResponse)
async def analyze_resume(request: ResumeTextRequest, user: dict = Depends(get_current_user)):
    """Review a resume with Gemini. Nothing is stored."""
    try:
        analysis = get_resume_reviewer().analyze(request.resume_text)
    except ResumeValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LLMError as e:
        logger.error("Resume analysis failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to analyze resume: {e}")

    return ResumeAnalyzeResponse(analysis=analysis)


@router.post("/review", response_model=ResumeReviewResponse)
async def review_resume(request: ResumeTextRequest, user: dict = Depends(get_current_user)):
    """Review a resume and store the result."""
    try:
        review = get_resume_reviewer().review_and_store(user["user_id"], request.resume_text)
    except (ResumeValidationError, UserNotFoundError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LLMError as e:
        logger.error("Resume review failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to analyze resume: {e}")
    except SQLAlchemyError as e:
        logger.error("Failed to save resume review: %s", e)
        raise HTTPException(status_code=500, detail="Failed to save review to database")

    return ResumeReviewResponse(review=review)


@router.get("/review", response_model=ResumeReviewListResponse)
async def resume_history(user: dict = Depends(get_current_user)):
    """Latest 20 reviews, newest first."""
    return ResumeReviewListResponse(reviews=list_reviews(user["user_id"]))


@router.post("/match", response_model=ResumeMatchResponse)
async def match_resume(request: ResumeMatchRequest, user: dict = Depends(get_current_user)):
    """Compare a resume with a job description."""
    try:
        result = get_resume_reviewer().match(request.resume_text, request.job_description)
    except ResumeValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LLMError as e:
        logger.error("Resume match failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to match resume: {e}")

    return ResumeMatchResponse(**result)


@router.get("/health")
async def resume_health():
    """200 when every check passes, 503 otherwise."""
    report = run_health_checks()
    return JSONResponse(content=report, status_code=200 if report["overall"] else 503)
