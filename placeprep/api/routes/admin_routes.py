"""
Admin Routes

GET /admin/users - All users (no password hashes)
GET /admin/stats - User counts
PUT /admin/users/{user_id}/active - Activate / deactivate an account
POST /admin/questions/aptitude - Add aptitude question
POST /admin/questions/technical - Add technical question
POST /admin/questions/interview - Add interview question
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text

from placeprep.db.postgres import get_db_session, execute_raw_sql, fetch_one
from placeprep.core.auth import get_current_admin
from placeprep.schemas.schemas import (
    UserResponse, AdminStatsResponse, UserActiveUpdate, MessageResponse, CreatedResponse,
    AptitudeQuestionCreate, TechnicalQuestionCreate, InterviewQuestionCreate
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=List[UserResponse])
async def list_users(admin: dict = Depends(get_current_admin)):
    """Every account, newest first."""
    rows = execute_raw_sql("""
        SELECT id, email, full_name, role, department, year, is_active, created_at
        FROM users ORDER BY created_at DESC
    """)
    return [UserResponse(**{**row, "id": str(row["id"])}) for row in rows]


@router.get("/stats", response_model=AdminStatsResponse)
async def user_stats(admin: dict = Depends(get_current_admin)):
    row = fetch_one("""
        SELECT COUNT(*) AS total_users,
               COUNT(*) FILTER (WHERE role = 'STUDENT') AS students,
               COUNT(*) FILTER (WHERE role = 'ADMIN') AS admins,
               COUNT(*) FILTER (WHERE is_active) AS active_users
        FROM users
    """)
    return AdminStatsResponse(**{key: int(value or 0) for key, value in row.items()})


@router.put("/users/{user_id}/active", response_model=MessageResponse)
async def set_user_active(user_id: UUID, data: UserActiveUpdate, admin: dict = Depends(get_current_admin)):
    user_id = str(user_id)
    if user_id == admin["user_id"] and not data.is_active:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")

    with get_db_session() as db:
        result = db.execute(
            text("UPDATE users SET is_active = :is_active WHERE id = :id"),
            {"is_active": data.is_active, "id": user_id}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="User not found")

    state = "activated" if data.is_active else "deactivated"
    logger.info("Admin %s %s user %s", admin["user_id"], state, user_id)
    return MessageResponse(message=f"User {state}")


def _insert_mcq(table: str, extra_column: str, extra_value: str, data) -> str:
    with get_db_session() as db:
        result = db.execute(
            text(f"""
                INSERT INTO {table}
                    (question_text, option_a, option_b, option_c, option_d, correct_answer, {extra_column}, difficulty)
                VALUES (:question_text, :a, :b, :c, :d, :correct_answer, :extra, :difficulty)
                RETURNING id
            """),
            {
                "question_text": data.question_text,
                "a": data.options[0], "b": data.options[1], "c": data.options[2], "d": data.options[3],
                "correct_answer": data.correct_answer,
                "extra": extra_value,
                "difficulty": data.difficulty.value
            }
        )
        return str(result.fetchone()[0])


@router.post("/questions/aptitude", response_model=CreatedResponse, status_code=201)
async def add_aptitude_question(data: AptitudeQuestionCreate, admin: dict = Depends(get_current_admin)):
    question_id = _insert_mcq("aptitude_questions", "question_type", data.question_type.value, data)
    return CreatedResponse(id=question_id, message="Aptitude question added")


@router.post("/questions/technical", response_model=CreatedResponse, status_code=201)
async def add_technical_question(data: TechnicalQuestionCreate, admin: dict = Depends(get_current_admin)):
    question_id = _insert_mcq("technical_questions", "topic", data.topic, data)
    return CreatedResponse(id=question_id, message="Technical question added")


@router.post("/questions/interview", response_model=CreatedResponse, status_code=201)
async def add_interview_question(data: InterviewQuestionCreate, admin: dict = Depends(get_current_admin)):
    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO interview_questions (question_text, role_type, topic, difficulty)
                VALUES (:question_text, :role_type, :topic, :difficulty)
                RETURNING id
            """),
            {
                "question_text": data.question_text,
                "role_type": data.role_type,
                "topic": data.topic,
                "difficulty": data.difficulty.value
            }
        )
        question_id = str(result.fetchone()[0])
    return CreatedResponse(id=question_id, message="Interview question added")
