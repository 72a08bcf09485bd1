"""
Mock Interview Service

HOW IT WORKS:
1. A student has at most one active session (ended_at IS NULL)
2. Questions are picked at random, or personalised from the profile
   and the weakest performance topics
3. Each answer (typed or transcribed) is evaluated by Gemini with the
   student's profile and past performance in the prompt
4. The response is stored, then the session average and the per-topic
   running average are updated

Bookkeeping after the response is stored (session score, topic metric)
is logged and skipped on failure; the evaluation is still returned.
"""

import json
import logging
import random
from typing import List, Optional

import numpy as np
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from placeprep.db.postgres import get_db_session, execute_raw_sql, fetch_one
from placeprep.services.gemini_client import LLMError, get_gemini_client

logger = logging.getLogger(__name__)

WEAK_THRESHOLD = 6
STRONG_THRESHOLD = 7
WEAK_TOPIC_LIMIT = 5
TOP_CANDIDATES = 5
RESUME_PROMPT_CHARS = 500

PROFILE_COLUMNS = "resume_text, skills, career_goal, interests, target_company_type"

EMPTY_PROFILE = {
    "resume_text": None,
    "skills": None,
    "career_goal": None,
    "interests": None,
    "target_company_type": None,
}

EVALUATION_DEFAULTS = {
    "strengths": "No specific strengths identified",
    "weaknesses": "No specific weaknesses identified",
    "ideal_answer": "Ideal answer not provided",
    "feedback": "No feedback provided",
}


class InterviewNotFoundError(LookupError):
    """A session, question or student row the caller needs is missing."""


# ============================================================
# SESSIONS
# ============================================================

def _session_out(row: dict) -> dict:
    return {
        "session_id": str(row["id"]),
        "started_at": row["started_at"],
        "total_score": float(row["total_score"]) if row.get("total_score") is not None else None,
    }


def get_active_session(student_id: str) -> Optional[dict]:
    """Newest session with no ended_at, or None."""
    row = fetch_one("""
        SELECT id, started_at, total_score
        FROM mock_interview_sessions
        WHERE student_id = :student_id AND ended_at IS NULL
        ORDER BY started_at DESC
        LIMIT 1
    """, {"student_id": student_id})
    return _session_out(row) if row else None


def get_or_create_session(student_id: str, ai_context: Optional[dict] = None) -> dict:
    """Return the active session, creating one when there is none."""
    session = get_active_session(student_id)
    if session:
        return session

    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO mock_interview_sessions (student_id, ai_context)
                VALUES (:student_id, CAST(:ai_context AS jsonb))
                RETURNING id, started_at, total_score
            """),
            {"student_id": student_id,
             "ai_context": json.dumps(ai_context, default=str) if ai_context else None}
        )
        row = dict(result.mappings().first())

    logger.info("Created interview session %s for student %s", row["id"], student_id)
    return _session_out(row)


def end_session(student_id: str) -> dict:
    """Stamp ended_at on the active session and return its final summary."""
    session = get_active_session(student_id)
    if not session:
        raise InterviewNotFoundError("No active interview session")

    with get_db_session() as db:
        result = db.execute(
            text("""
                UPDATE mock_interview_sessions
                SET ended_at = now()
                WHERE id = :id
                RETURNING id, started_at, ended_at, total_score,
                          (SELECT count(*) FROM interview_responses WHERE session_id = :id) AS responses_count
            """),
            {"id": session["session_id"]}
        )
        row = dict(result.mappings().first())

    logger.info("Ended interview session %s (%s responses)", row["id"], row["responses_count"])
    summary = _session_out(row)
    summary["ended_at"] = row["ended_at"]
    summary["responses_count"] = int(row["responses_count"])
    return summary


# ============================================================
# PROFILE & METRICS
# ============================================================

def get_student_profile(student_id: str) -> Optional[dict]:
    return fetch_one(f"SELECT {PROFILE_COLUMNS} FROM users WHERE id = :id", {"id": student_id})


def get_performance_metrics(student_id: str) -> List[dict]:
    """All topic metrics for a student, most recently updated first."""
    rows = execute_raw_sql("""
        SELECT id, student_id, topic, avg_score, total_attempts, last_updated
        FROM user_performance_metrics
        WHERE student_id = :student_id
        ORDER BY last_updated DESC
    """, {"student_id": student_id})
    for row in rows:
        row["id"] = str(row["id"])
        row["student_id"] = str(row["student_id"])
        row["avg_score"] = float(row["avg_score"]) if row["avg_score"] is not None else None
    return rows


def _avg(metric: dict) -> float:
    return float(metric.get("avg_score") or 0)


def weak_topics_for(metrics: List[dict]) -> List[str]:
    """Topics among the five lowest averages that score below the weak threshold."""
    lowest = sorted(metrics, key=_avg)[:WEAK_TOPIC_LIMIT]
    return [m["topic"] for m in lowest if _avg(m) < WEAK_THRESHOLD]


def performance_summary(metrics: List[dict]) -> dict:
    """Statistics block for the performance dashboard."""
    total_attempts = sum(int(m.get("total_attempts") or 0) for m in metrics)
    if total_attempts:
        overall = float(np.average(
            [_avg(m) for m in metrics],
            weights=[int(m.get("total_attempts") or 0) for m in metrics]
        ))
    else:
        overall = 0.0

    weak = [m for m in metrics if _avg(m) < WEAK_THRESHOLD]
    strong = [m for m in metrics if _avg(m) >= STRONG_THRESHOLD]
    return {
        "metrics": metrics,
        "statistics": {
            "total_attempts": total_attempts,
            "overall_avg_score": round(overall, 2),
            "topics_practiced": len(metrics),
            "weak_topics_count": len(weak),
            "strong_topics_count": len(strong),
        },
        "weak_topics": weak,
        "strong_topics": strong,
    }


def running_average(current_avg: float, previous_attempts: int, score: float) -> float:
    """New topic average after one more attempt."""
    attempts = previous_attempts + 1
    return round((current_avg * previous_attempts + score) / attempts, 2)


# ============================================================
# QUESTIONS
# ============================================================

def _question_out(row: dict) -> dict:
    return {
        "question_id": str(row["id"]),
        "question_text": row["question_text"],
        "role_type": row.get("role_type"),
        "topic": row["topic"],
        "difficulty": row.get("difficulty"),
    }


def get_random_question(role_type: Optional[str] = None, topic: Optional[str] = None,
                        difficulty: Optional[str] = None) -> dict:
    """One random active question matching the optional filters."""
    sql = "SELECT id, question_text, role_type, topic, difficulty FROM interview_questions WHERE is_active = true"
    params = {}
    for column, value in (("role_type", role_type), ("topic", topic), ("difficulty", difficulty)):
        if value:
            sql += f" AND {column} = :{column}"
            params[column] = value

    rows = execute_raw_sql(sql, params)
    if not rows:
        raise InterviewNotFoundError("No questions found matching the criteria")
    return _question_out(random.choice(rows))


def get_question(question_id: str) -> dict:
    row = fetch_one("""
        SELECT id, question_text, role_type, topic, difficulty
        FROM interview_questions
        WHERE id = :id AND is_active = true
    """, {"id": question_id})
    if not row:
        raise InterviewNotFoundError("Question not found or inactive")
    return row


def prioritize_questions(questions: List[dict], profile: dict, weak_topics: List[str]) -> List[dict]:
    """
    Score each question against the profile, highest first.

    +3 skill/interest in topic, +5 weak topic, +2 career goal in topic,
    +1 Medium difficulty.
    """
    preferred = [t.lower() for t in (profile.get("skills") or []) + (profile.get("interests") or []) if t]
    career_goal = (profile.get("career_goal") or "").lower()

    scored = []
    for question in questions:
        topic = (question.get("topic") or "").lower()
        score = 0
        if any(p in topic for p in preferred):
            score += 3
        if question.get("topic") in weak_topics:
            score += 5
        if career_goal and career_goal in topic:
            score += 2
        if question.get("difficulty") == "Medium":
            score += 1
        scored.append({**question, "priority_score": score})

    scored.sort(key=lambda q: q["priority_score"], reverse=True)
    return scored


def priority_reason(question: dict, profile: dict, weak_topics: List[str]) -> str:
    topic = (question.get("topic") or "").lower()
    preferred = [t.lower() for t in (profile.get("skills") or []) + (profile.get("interests") or []) if t]
    if question.get("topic") in weak_topics:
        return "Selected based on areas needing improvement"
    if any(p in topic for p in preferred):
        return "Selected based on your skills/interests"
    return "Selected for balanced practice"


def get_personalized_question(student_id: str) -> dict:
    profile = get_student_profile(student_id)
    if profile is None:
        raise InterviewNotFoundError("Student not found")

    weak = weak_topics_for(get_performance_metrics(student_id))
    questions = execute_raw_sql("""
        SELECT id, question_text, role_type, topic, difficulty
        FROM interview_questions
        WHERE is_active = true
    """)
    if not questions:
        raise InterviewNotFoundError("No questions found")

    ranked = prioritize_questions(questions, profile, weak)
    chosen = random.choice(ranked[:TOP_CANDIDATES])
    result = _question_out(chosen)
    result["priority_reason"] = priority_reason(chosen, profile, weak)
    return result


# ============================================================
# PROMPTS
# ============================================================

def _join(values) -> str:
    return ", ".join(values) if values else "Not specified"


def build_context_prompt(profile: dict, metrics: List[dict]) -> str:
    performance = ""
    if metrics:
        weak = [m["topic"] for m in metrics if _avg(m) < WEAK_THRESHOLD]
        strong = [m["topic"] for m in metrics if _avg(m) >= STRONG_THRESHOLD]
        performance = (
            "\n\nPerformance Analysis:"
            f"\n- Strong Topics: {', '.join(strong) if strong else 'None identified'}"
            f"\n- Areas Needing Practice: {', '.join(weak) if weak else 'None identified'}"
        )

    return f"""Based on the following student profile, generate a comprehensive interview context that will help select appropriate questions and personalize the interview experience.

STUDENT PROFILE:
- Career Goal: {profile.get('career_goal') or 'Not specified'}
- Skills: {_join(profile.get('skills'))}
- Interests: {_join(profile.get('interests'))}
- Target Company Type: {profile.get('target_company_type') or 'Not specified'}
- Resume: {profile.get('resume_text') or 'Not provided'}{performance}

Generate a concise interview context (2-3 sentences) that summarizes:
1. The student's technical background and career aspirations
2. Key areas to focus on during the interview
3. Appropriate difficulty level and topics

Return ONLY the context text, no additional formatting or labels."""


def fallback_context(profile: dict) -> str:
    skills = ", ".join(profile.get("skills") or []) or "Various"
    return f"Interview context for student with career goal: {profile.get('career_goal') or 'General'}, skills: {skills}"


def build_evaluation_prompt(question: str, answer: str, role_type: str, topic: str,
                            difficulty: str, profile: dict, metrics: List[dict]) -> str:
    performance = ""
    if metrics:
        lines = ", ".join(
            f"{m['topic']}: {m['avg_score']:.1f}/10 ({m['total_attempts']} attempts)"
            if m.get("avg_score") is not None else f"{m['topic']}: N/A/10 ({m['total_attempts']} attempts)"
            for m in metrics
        )
        performance = f"\n\nPast Performance:\n{lines}"

    resume = profile.get("resume_text")
    resume_summary = f"\nResume Summary: {resume[:RESUME_PROMPT_CHARS]}..." if resume else ""

    return f"""You are an experienced {role_type} interviewer evaluating a candidate's response to a technical interview question.

CANDIDATE PROFILE:
- Career Goal: {profile.get('career_goal') or 'Not specified'}
- Skills: {_join(profile.get('skills'))}
- Interests: {_join(profile.get('interests'))}
- Target Company Type: {profile.get('target_company_type') or 'Not specified'}
{resume_summary}{performance}

INTERVIEW QUESTION:
Topic: {topic}
Difficulty: {difficulty}
Question: {question}

CANDIDATE'S ANSWER:
{answer}

Evaluate this answer considering the candidate's background and career goals, technical accuracy and depth, communication clarity, and readiness for their target role.

Return JSON in this format:
{{
  "score": <number between 0 and 10>,
  "technical_accuracy": <number between 0 and 10>,
  "communication_clarity": <number between 0 and 10>,
  "interview_readiness": <number between 0 and 10>,
  "strengths": "<comma-separated list of what the candidate did well>",
  "weaknesses": "<comma-separated list of areas that need improvement>",
  "ideal_answer": "<an ideal answer tailored to their skill level and career goals>",
  "feedback": "<personalized feedback explaining the score and actionable steps to improve>"
}}

Return ONLY valid JSON, no additional text."""


def _clamp_ten(value) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return max(0.0, min(10.0, number))


def normalize_evaluation(data: dict) -> dict:
    """Clamp scores to 0..10 and fill missing texts."""
    if not isinstance(data, dict):
        data = {}
    evaluation = {
        key: _clamp_ten(data.get(key))
        for key in ("score", "technical_accuracy", "communication_clarity", "interview_readiness")
    }
    for key, default in EVALUATION_DEFAULTS.items():
        value = data.get(key)
        evaluation[key] = str(value).strip() if value else default
    return evaluation


# ============================================================
# INTERVIEW SERVICE
# ============================================================

class InterviewService:
    """
    Context building and answer evaluation.
    Both make exactly one Gemini call.
    """

    @property
    def ai_client(self):
        return get_gemini_client()

    def build_context(self, student_id: str) -> dict:
        profile = get_student_profile(student_id)
        if profile is None:
            raise InterviewNotFoundError("Student not found")
        metrics = get_performance_metrics(student_id)

        try:
            context = self.ai_client.summarize_context(build_context_prompt(profile, metrics))
        except LLMError as e:
            logger.error("Interview context generation failed, using fallback: %s", e)
            context = fallback_context(profile)

        ai_context = {"context": context, "profile": profile}
        session = get_active_session(student_id)
        if session:
            with get_db_session() as db:
                db.execute(
                    text("UPDATE mock_interview_sessions SET ai_context = CAST(:ctx AS jsonb) WHERE id = :id"),
                    {"ctx": json.dumps(ai_context, default=str), "id": session["session_id"]}
                )
        else:
            session = get_or_create_session(student_id, ai_context=ai_context)

        return {
            "session_id": session["session_id"],
            "context": context,
            "profile": profile,
            "performance_metrics": metrics,
        }

    def evaluate(self, student_id: str, question_id: str, answer_text: str,
                 transcribed_answer: Optional[str] = None, audio_url: Optional[str] = None,
                 role_type: Optional[str] = None, topic: Optional[str] = None,
                 difficulty: Optional[str] = None) -> dict:
        """
        Evaluate one answer and record it.

        Raises:
            InterviewNotFoundError: question missing or inactive
            LLMError: evaluation failed
        """
        question = get_question(question_id)
        session = get_or_create_session(student_id)
        session_id = session["session_id"]
        profile = get_student_profile(student_id) or dict(EMPTY_PROFILE)
        metrics = get_performance_metrics(student_id)

        question_topic = topic or question["topic"]
        prompt = build_evaluation_prompt(
            question["question_text"], answer_text,
            role_type or question.get("role_type") or "technical",
            question_topic,
            difficulty or question.get("difficulty") or "Medium",
            profile, metrics
        )
        evaluation = normalize_evaluation(self.ai_client.evaluate_answer(prompt))

        with get_db_session() as db:
            result = db.execute(
                text("""
                    INSERT INTO interview_responses
                        (session_id, question_id, student_answer, transcribed_answer, audio_url,
                         ai_score, ai_feedback, ideal_answer)
                    VALUES (:session_id, :question_id, :student_answer, :transcribed_answer, :audio_url,
                            :ai_score, :ai_feedback, :ideal_answer)
                    RETURNING id
                """),
                {
                    "session_id": session_id,
                    "question_id": question_id,
                    "student_answer": answer_text,
                    "transcribed_answer": transcribed_answer or None,
                    "audio_url": audio_url or None,
                    "ai_score": evaluation["score"],
                    "ai_feedback": evaluation["feedback"],
                    "ideal_answer": evaluation["ideal_answer"],
                }
            )
            response_id = str(result.fetchone()[0])

        logger.info("Stored interview response %s (score=%.1f) in session %s",
                    response_id, evaluation["score"], session_id)

        self._update_session_score(session_id)
        self._update_topic_metric(student_id, question_topic, evaluation["score"])

        return {
            "success": True,
            "response_id": response_id,
            "evaluation": evaluation,
            "session_id": session_id,
        }

    def _update_session_score(self, session_id: str):
        try:
            with get_db_session() as db:
                db.execute(
                    text("""
                        UPDATE mock_interview_sessions
                        SET total_score = (
                            SELECT ROUND(AVG(COALESCE(ai_score, 0))::numeric, 2)
                            FROM interview_responses WHERE session_id = :id
                        )
                        WHERE id = :id
                    """),
                    {"id": session_id}
                )
        except SQLAlchemyError as e:
            logger.error("Error updating session score for %s: %s", session_id, e)

    def _update_topic_metric(self, student_id: str, topic: str, score: float):
        try:
            existing = fetch_one("""
                SELECT avg_score, total_attempts FROM user_performance_metrics
                WHERE student_id = :student_id AND topic = :topic
            """, {"student_id": student_id, "topic": topic})

            if existing:
                attempts = int(existing["total_attempts"] or 0)
                new_avg = running_average(float(existing["avg_score"] or 0), attempts, score)
                attempts += 1
            else:
                new_avg, attempts = round(score, 2), 1

            with get_db_session() as db:
                db.execute(
                    text("""
                        INSERT INTO user_performance_metrics (student_id, topic, avg_score, total_attempts)
                        VALUES (:student_id, :topic, :avg_score, :total_attempts)
                        ON CONFLICT (student_id, topic) DO UPDATE
                        SET avg_score = EXCLUDED.avg_score,
                            total_attempts = EXCLUDED.total_attempts,
                            last_updated = now()
                    """),
                    {"student_id": student_id, "topic": topic,
                     "avg_score": new_avg, "total_attempts": attempts}
                )
        except SQLAlchemyError as e:
            logger.error("Error updating performance metric %s/%s: %s", student_id, topic, e)


def get_interview_service() -> InterviewService:
    """Get interview service instance."""
    return InterviewService()
