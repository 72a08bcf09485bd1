"""
Exam Service - Aptitude and technical MCQ exams.

FLOW:
1. Pick random active questions from the bank (per type / per difficulty)
2. Shuffle and strip the answers before they reach the client
3. Seal the answer key into a signed, expiring token bound to the student
4. On submit, verify the token, grade, store the result row
5. History + stats for the dashboard

The answer key never lives on the server between generate and submit;
the signed token is the only copy.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import numpy as np
from jose import JWTError, jwt
from sqlalchemy import text

from placeprep.core.config import get_settings
from placeprep.db.postgres import get_db_session, execute_raw_sql

logger = logging.getLogger(__name__)
settings = get_settings()

APTITUDE = "aptitude"
TECHNICAL = "technical"

APTITUDE_TYPES = ("quantitative", "logical", "verbal")
APTITUDE_PER_TYPE = 5
TECHNICAL_DISTRIBUTION = {"easy": 5, "medium": 7, "hard": 3}
BANK_FETCH_LIMIT = 100

RESULT_TABLES = {
    APTITUDE: "aptitude_test_results",
    TECHNICAL: "technical_test_results",
}


class NotEnoughQuestionsError(Exception):
    """The question bank cannot fill an exam."""


class InvalidAnswersToken(Exception):
    """Answer token is malformed, expired, or issued for someone else."""


# ============================================================
# QUESTION SELECTION
# ============================================================

def pick_random(rows: List[dict], count: int) -> List[dict]:
    """Up to `count` distinct rows in random order."""
    return random.sample(rows, min(count, len(rows)))


def select_aptitude_questions() -> List[dict]:
    """5 random active questions of each aptitude type, shuffled together."""
    selected = []
    for question_type in APTITUDE_TYPES:
        rows = execute_raw_sql("""
            SELECT id, question_text, option_a, option_b, option_c, option_d,
                   correct_answer, question_type, difficulty
            FROM aptitude_questions
            WHERE question_type = :question_type AND is_active = true
            LIMIT :limit
        """, {"question_type": question_type, "limit": BANK_FETCH_LIMIT})
        selected.extend(pick_random(rows, APTITUDE_PER_TYPE))

    needed = APTITUDE_PER_TYPE * len(APTITUDE_TYPES)
    if len(selected) < needed:
        logger.error("Aptitude bank too small: %d of %d questions", len(selected), needed)
        raise NotEnoughQuestionsError("Not enough questions available")

    random.shuffle(selected)
    return selected


def select_technical_questions(topic: Optional[str] = None) -> List[dict]:
    """5 easy, 7 medium, 3 hard random active questions, optionally for one topic."""
    selected = []
    counts = {}
    for difficulty, wanted in TECHNICAL_DISTRIBUTION.items():
        sql = """
            SELECT id, question_text, option_a, option_b, option_c, option_d,
                   correct_answer, topic, difficulty
            FROM technical_questions
            WHERE difficulty = :difficulty AND is_active = true
        """
        params = {"difficulty": difficulty, "limit": BANK_FETCH_LIMIT}
        if topic:
            sql += " AND topic = :topic"
            params["topic"] = topic
        sql += " LIMIT :limit"

        picked = pick_random(execute_raw_sql(sql, params), wanted)
        counts[difficulty] = len(picked)
        selected.extend(picked)

    if any(counts[d] < wanted for d, wanted in TECHNICAL_DISTRIBUTION.items()):
        detail = ", ".join(f"{d}: {counts[d]}/{w}" for d, w in TECHNICAL_DISTRIBUTION.items())
        logger.error("Technical bank too small (topic=%s): %s", topic, detail)
        raise NotEnoughQuestionsError(f"Not enough questions available ({detail})")

    random.shuffle(selected)
    return selected


def build_client_questions(rows: List[dict], kind: str):
    """
    Number the questions 1..n for the client and split off the answer key.

    Returns:
        (questions without answers, [{"id", "correct_answer"}])
    """
    questions = []
    answer_key = []
    for index, row in enumerate(rows, start=1):
        item = {
            "id": index,
            "question_id": str(row["id"]),
            "question": row["question_text"],
            "options": [row["option_a"], row["option_b"], row["option_c"], row["option_d"]],
            "difficulty": row.get("difficulty"),
        }
        if kind == APTITUDE:
            item["type"] = row.get("question_type")
        else:
            item["topic"] = row.get("topic")
        questions.append(item)
        answer_key.append({"id": index, "correct_answer": row["correct_answer"]})
    return questions, answer_key


def summarize_selection(questions: List[dict], kind: str) -> str:
    """Human-readable breakdown shown above the exam."""
    field = "type" if kind == APTITUDE else "difficulty"
    order = APTITUDE_TYPES if kind == APTITUDE else tuple(TECHNICAL_DISTRIBUTION)
    counts = {key: 0 for key in order}
    for question in questions:
        if question.get(field) in counts:
            counts[question[field]] += 1
    parts = ", ".join(f"{counts[key]} {key}" for key in order)
    return f"{len(questions)} questions: {parts}"


# ============================================================
# ANSWER TOKENS
# ============================================================

def create_answers_token(student_id: str, kind: str, answer_key: List[dict],
                         expires_delta: Optional[timedelta] = None) -> str:
    """Seal the answer key in a JWT bound to the student and exam kind."""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.exam_token_expire_minutes))
    payload = {
        "sub": student_id,
        "type": "exam",
        "kind": kind,
        "key": answer_key,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_answers_token(token: str, student_id: str, kind: str) -> List[dict]:
    """Return the answer key, or raise InvalidAnswersToken."""
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise InvalidAnswersToken("Invalid answers token") from e

    if (payload.get("type") != "exam" or payload.get("kind") != kind
            or payload.get("sub") != student_id or not isinstance(payload.get("key"), list)):
        raise InvalidAnswersToken("Invalid answers token")
    return payload["key"]


# ============================================================
# GRADING & STORAGE
# ============================================================

def grade_answers(answers: List[dict], answer_key: List[dict]) -> Dict[str, float]:
    """
    Count correct and incorrect answers against the key.
    Answers for ids not in the key are ignored, and only the first answer
    to each question is graded.
    """
    correct_by_id = {item["id"]: item["correct_answer"] for item in answer_key}
    graded = set()
    correct = 0
    incorrect = 0
    for answer in answers:
        question_id = answer.get("question_id")
        if question_id not in correct_by_id or question_id in graded:
            continue
        graded.add(question_id)
        if answer.get("selected_answer") == correct_by_id[question_id]:
            correct += 1
        else:
            incorrect += 1

    total = len(answer_key)
    score = round(correct / total * 100, 2) if total else 0
    return {
        "total_questions": total,
        "correct_answers": correct,
        "incorrect_answers": incorrect,
        "score_percentage": score,
    }


def store_result(kind: str, student_id: str, grade: dict, time_taken_seconds: Optional[int] = None,
                 tab_switches: int = 0, violations: int = 0) -> dict:
    """Insert a result row and return {id, test_date}."""
    table = RESULT_TABLES[kind]
    columns = ["student_id", "total_questions", "correct_answers", "incorrect_answers",
               "score_percentage", "time_taken_seconds", "tab_switches", "violations"]
    params = {
        "student_id": student_id,
        "time_taken_seconds": time_taken_seconds,
        "tab_switches": tab_switches or 0,
        "violations": violations or 0,
        **grade,
    }
    if kind == APTITUDE:
        columns.append("resume_analyzed")
        params["resume_analyzed"] = False

    placeholders = ", ".join(f":{column}" for column in columns)
    with get_db_session() as db:
        result = db.execute(
            text(f"""
                INSERT INTO {table} ({", ".join(columns)})
                VALUES ({placeholders})
                RETURNING id, test_date
            """),
            params
        )
        row = result.fetchone()

    logger.info("Graded %s exam for student %s: %s/%s (%s%%)", kind, student_id,
                grade["correct_answers"], grade["total_questions"], grade["score_percentage"])
    return {"id": str(row[0]), "test_date": row[1]}


# ============================================================
# HISTORY & STATS
# ============================================================

def fetch_history(kind: str, student_id: str, limit: int = 10) -> List[dict]:
    """Latest result rows for the student, newest first."""
    rows = execute_raw_sql(f"""
        SELECT id, total_questions, correct_answers, incorrect_answers, score_percentage,
               time_taken_seconds, tab_switches, violations, test_date
        FROM {RESULT_TABLES[kind]}
        WHERE student_id = :student_id
        ORDER BY test_date DESC
        LIMIT :limit
    """, {"student_id": student_id, "limit": limit})
    for row in rows:
        row["id"] = str(row["id"])
        row["score_percentage"] = float(row["score_percentage"])
    return rows


def compute_history_stats(history: List[dict]) -> Optional[dict]:
    """
    Stats over a newest-first history list.
    improvement_trend is latest minus the one before it.
    """
    if not history:
        return None

    scores = np.array([float(row["score_percentage"]) for row in history])
    trend = scores[0] - scores[1] if len(scores) > 1 else 0.0
    return {
        "total_tests": int(len(scores)),
        "average_score": round(float(np.mean(scores)), 2),
        "best_score": round(float(np.max(scores)), 2),
        "latest_score": round(float(scores[0]), 2),
        "improvement_trend": round(float(trend), 2),
    }
