"""
Mock Interview Routes

POST /interview/session - Get or create the active session
GET /interview/session - Active session (or {"session": null})
POST /interview/session/end - Close the active session
GET /interview/question - Random question (optional filters)
GET /interview/question/personalized - Question picked from profile + weak topics
POST /interview/context - Gemini interview context stored on the session
POST /interview/evaluate - Evaluate an answer (typed or transcribed)
GET /interview/performance - Per-topic metrics and totals
POST /interview/speech-analysis - Pace / filler heuristic for a transcript
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends

from placeprep.core.auth import get_current_student
from placeprep.services import interview_service
from placeprep.services.interview_service import InterviewNotFoundError, get_interview_service
from placeprep.services.gemini_client import LLMError
from placeprep.services.speech_analysis import analyze_speech
from placeprep.schemas.schemas import (
    SessionResponse, SessionEndResponse, InterviewQuestionResponse, PersonalizedQuestionResponse,
    InterviewContextResponse, EvaluateRequest, EvaluateResponse, PerformanceResponse,
    SpeechAnalysisRequest, SpeechAnalysisResponse, InterviewDifficulty
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interview", tags=["Mock Interview"])


@router.post("/session", response_model=SessionResponse)
async def start_session(student: dict = Depends(get_current_student)):
    return interview_service.get_or_create_session(student["user_id"])


@router.get("/session")
async def active_session(student: dict = Depends(get_current_student)):
    session = interview_service.get_active_session(student["user_id"])
    if not session:
        return {"session": None}
    return session


@router.post("/session/end", response_model=SessionEndResponse)
async def end_session(student: dict = Depends(get_current_student)):
    """Stamp ended_at on the active session and return its summary."""
    try:
        return interview_service.end_session(student["user_id"])
    except InterviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/question", response_model=InterviewQuestionResponse)
async def random_question(
    role_type: Optional[str] = None,
    topic: Optional[str] = None,
    difficulty: Optional[InterviewDifficulty] = None,
    student: dict = Depends(get_current_student)
):
    try:
        return interview_service.get_random_question(
            role_type, topic, difficulty.value if difficulty else None
        )
    except InterviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/question/personalized", response_model=PersonalizedQuestionResponse)
async def personalized_question(student: dict = Depends(get_current_student)):
    """
    Pick from the five best-scoring questions for this student.
    Weak topics, skills/interests, career goal and Medium difficulty raise a question's score.
    """
    try:
        return interview_service.get_personalized_question(student["user_id"])
    except InterviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/context", response_model=InterviewContextResponse)
async def interview_context(student: dict = Depends(get_current_student)):
    try:
        return get_interview_service().build_context(student["user_id"])
    except InterviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate_answer(request: EvaluateRequest, student: dict = Depends(get_current_student)):
    """
    Evaluate an answer with Gemini and record it.
    transcribed_answer takes precedence over student_answer.
    """
    answer_text = (request.transcribed_answer or "").strip() or (request.student_answer or "").strip()
    if not request.question_id or not answer_text:
        raise HTTPException(
            status_code=400,
            detail="student_answer (or transcribed_answer) and question_id are required"
        )

    try:
        return get_interview_service().evaluate(
            student["user_id"], str(request.question_id), answer_text,
            transcribed_answer=request.transcribed_answer,
            audio_url=request.audio_url,
            role_type=request.role_type,
            topic=request.topic,
            difficulty=request.difficulty
        )
    except InterviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except LLMError as e:
        logger.error("Gemini evaluation error: %s", e)
        raise HTTPException(status_code=502, detail=f"Failed to evaluate answer with AI: {e}")


@router.get("/performance", response_model=PerformanceResponse)
async def performance(student: dict = Depends(get_current_student)):
    metrics = interview_service.get_performance_metrics(student["user_id"])
    return interview_service.performance_summary(metrics)


@router.post("/speech-analysis", response_model=SpeechAnalysisResponse)
async def speech_analysis(request: SpeechAnalysisRequest, student: dict = Depends(get_current_student)):
    return analyze_speech(request.transcript, request.duration_sec)
