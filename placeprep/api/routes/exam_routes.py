"""
Exam Routes - Aptitude and technical MCQ exams

GET /aptitude/generate - 15 questions (5 quantitative, 5 logical, 5 verbal)
POST /aptitude/submit - Grade and store
GET /aptitude/history - Past results + stats

GET /technical-exam/generate?topic= - 15 questions (5 easy, 7 medium, 3 hard)
POST /technical-exam/submit - Grade and store
GET /technical-exam/history - Past results + stats
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from placeprep.core.auth import get_current_student
from placeprep.services import exam_service
from placeprep.services.exam_service import (
    APTITUDE, TECHNICAL, NotEnoughQuestionsError, InvalidAnswersToken
)
from placeprep.schemas.schemas import (
    ExamGenerateResponse, ExamSubmitRequest, ExamSubmitResponse, ExamResult, ExamHistoryResponse
)

logger = logging.getLogger(__name__)

aptitude_router = APIRouter(prefix="/aptitude", tags=["Aptitude Exam"])
technical_router = APIRouter(prefix="/technical-exam", tags=["Technical Exam"])


def generate_exam(kind: str, student_id: str, topic: Optional[str] = None) -> ExamGenerateResponse:
    try:
        if kind == APTITUDE:
            rows = exam_service.select_aptitude_questions()
        else:
            rows = exam_service.select_technical_questions(topic)
    except NotEnoughQuestionsError as e:
        raise HTTPException(status_code=500, detail=str(e))

    questions, answer_key = exam_service.build_client_questions(rows, kind)
    return ExamGenerateResponse(
        questions=questions,
        summary=exam_service.summarize_selection(questions, kind),
        total_questions=len(questions),
        answers_token=exam_service.create_answers_token(student_id, kind, answer_key)
    )


def submit_exam(kind: str, student_id: str, request: ExamSubmitRequest) -> ExamSubmitResponse:
    try:
        answer_key = exam_service.decode_answers_token(request.answers_token, student_id, kind)
    except InvalidAnswersToken as e:
        raise HTTPException(status_code=400, detail=str(e))

    grade = exam_service.grade_answers([a.model_dump() for a in request.answers], answer_key)
    try:
        stored = exam_service.store_result(
            kind, student_id, grade,
            time_taken_seconds=request.time_taken_seconds,
            tab_switches=request.tab_switches,
            violations=request.violations
        )
    except SQLAlchemyError as e:
        logger.error("Failed to save %s test results: %s", kind, e)
        raise HTTPException(status_code=500, detail="Failed to save test results")

    result = ExamResult(
        id=stored["id"],
        test_date=stored["test_date"],
        time_taken=request.time_taken_seconds,
        **grade
    )
    return ExamSubmitResponse(
        result=result,
        message=f"Test completed! You scored {grade['score_percentage']}%"
    )


def exam_history(kind: str, student_id: str, limit: int) -> ExamHistoryResponse:
    history = exam_service.fetch_history(kind, student_id, limit)
    return ExamHistoryResponse(history=history, stats=exam_service.compute_history_stats(history))


# ============================================================
# APTITUDE
# ============================================================

@aptitude_router.get("/generate", response_model=ExamGenerateResponse)
async def generate_aptitude(student: dict = Depends(get_current_student)):
    """Generate an aptitude test. Answers are sealed in answers_token."""
    return generate_exam(APTITUDE, student["user_id"])


@aptitude_router.post("/submit", response_model=ExamSubmitResponse)
async def submit_aptitude(request: ExamSubmitRequest, student: dict = Depends(get_current_student)):
    return submit_exam(APTITUDE, student["user_id"], request)


@aptitude_router.get("/history", response_model=ExamHistoryResponse)
async def aptitude_history(limit: int = Query(10, ge=1, le=100), student: dict = Depends(get_current_student)):
    return exam_history(APTITUDE, student["user_id"], limit)


# ============================================================
# TECHNICAL
# ============================================================

@technical_router.get("/generate", response_model=ExamGenerateResponse)
async def generate_technical(topic: Optional[str] = None, student: dict = Depends(get_current_student)):
    """Generate a technical test, optionally for a single topic."""
    return generate_exam(TECHNICAL, student["user_id"], topic)


@technical_router.post("/submit", response_model=ExamSubmitResponse)
async def submit_technical(request: ExamSubmitRequest, student: dict = Depends(get_current_student)):
    return submit_exam(TECHNICAL, student["user_id"], request)


@technical_router.get("/history", response_model=ExamHistoryResponse)
async def technical_history(limit: int = Query(10, ge=1, le=100), student: dict = Depends(get_current_student)):
    return exam_history(TECHNICAL, student["user_id"], limit)
