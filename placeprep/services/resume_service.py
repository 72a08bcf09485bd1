"""
Resume Review Service - ATS review and job matching using Gemini.

AI OUTPUT → VALIDATED → STORED IN resume_reviews (jsonb) → LISTED BY SQL

The model's JSON is never trusted as-is: every field is coerced to the
expected type and clamped to its range before it leaves this module.
"""

import json
import logging
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from placeprep.db.postgres import get_db_session, execute_raw_sql
from placeprep.services.gemini_client import get_gemini_client

logger = logging.getLogger(__name__)

MIN_RESUME_LENGTH = 100
REVIEW_HISTORY_LIMIT = 20
RATINGS = ("Excellent", "Good", "Average", "Needs Improvement")
PRIORITIES = ("High", "Medium", "Low")

SAMPLE_RESUME = """John Doe
Software Engineer
Email: john@example.com
Phone: 123-456-7890

EXPERIENCE
Software Engineer at Tech Corp (2020-2024)
- Developed web applications using React and Node.js
- Led a team of 3 developers
- Improved application performance by 40%

EDUCATION
Bachelor of Science in Computer Science
University of Technology (2016-2020)"""


class ResumeValidationError(ValueError):
    """Resume text failed the length/presence checks."""


class UserNotFoundError(LookupError):
    """The review references a user that does not exist."""


# ============================================================
# JSON VALIDATION HELPERS
# ============================================================

def clamp_score(value, low: int = 0, high: int = 100) -> int:
    """Coerce to int and clamp; anything unparseable becomes `low`."""
    try:
        number = int(round(float(value)))
    except (TypeError, ValueError):
        return low
    except OverflowError:
        return high if float(value) > 0 else low
    return max(low, min(high, number))


def _string_list(value) -> List[str]:
    if isinstance(value, str):
        value = [part for part in value.split(",")]
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item and str(item).strip()]


def validate_resume_analysis(data: dict) -> dict:
    """
    Validate and sanitize an ATS review from the model.
    Ensures all required fields exist with correct types.
    """
    if not isinstance(data, dict):
        data = {}

    rating = str(data.get("overall_rating", "")).strip()
    matched_rating = next((r for r in RATINGS if r.lower() == rating.lower()), "Average")

    validated = {
        "ats_score": clamp_score(data.get("ats_score")),
        "overall_rating": matched_rating,
        "strengths": _string_list(data.get("strengths")),
        "weaknesses": _string_list(data.get("weaknesses")),
        "key_improvements": [],
        "ats_analysis": {},
        "confidence_boost": str(data.get("confidence_boost") or "").strip()
    }

    improvements = data.get("key_improvements", [])
    if isinstance(improvements, list):
        for item in improvements:
            if not isinstance(item, dict):
                continue
            suggestion = str(item.get("suggestion", "")).strip()
            if not suggestion:
                continue
            priority = str(item.get("priority", "")).strip().capitalize()
            validated["key_improvements"].append({
                "category": str(item.get("category") or item.get("title") or "General").strip(),
                "suggestion": suggestion,
                "priority": priority if priority in PRIORITIES else "Medium"
            })

    ats = data.get("ats_analysis") if isinstance(data.get("ats_analysis"), dict) else {}
    validated["ats_analysis"] = {
        "keywords_match": clamp_score(ats.get("keywords_match")),
        "formatting_score": clamp_score(ats.get("formatting_score")),
        "content_quality": clamp_score(ats.get("content_quality"))
    }

    return validated


def validate_resume_match(data: dict) -> dict:
    """Validate and sanitize a resume/job-description comparison."""
    if not isinstance(data, dict):
        data = {}

    metrics = data.get("metrics") if isinstance(data.get("metrics"), dict) else {}
    total_keywords = clamp_score(metrics.get("total_keywords_in_job_description"), high=10_000)
    found_keywords = clamp_score(metrics.get("keywords_in_resume"), high=10_000)

    missing = data.get("missing_skills", "")
    if isinstance(missing, list):
        missing = ", ".join(_string_list(missing))

    improvements = []
    for item in data.get("key_improvements", []) or []:
        if isinstance(item, dict) and item.get("suggestion"):
            improvements.append({
                "title": str(item.get("title") or "Improvement").strip(),
                "suggestion": str(item["suggestion"]).strip()
            })

    return {
        "match_score": clamp_score(data.get("match_score")),
        "metrics": {
            "keywords_in_resume": min(found_keywords, total_keywords) if total_keywords else found_keywords,
            "total_keywords_in_job_description": total_keywords
        },
        "matched_keywords": _string_list(data.get("matched_keywords")),
        "missing_skills": str(missing or "").strip(),
        "key_improvements": improvements,
        "feedback": str(data.get("feedback") or "").strip()
    }


def check_resume_text(resume_text: Optional[str]) -> str:
    """Return the trimmed resume text or raise ResumeValidationError."""
    if not resume_text or not resume_text.strip():
        raise ResumeValidationError("resume_text is required")
    trimmed = resume_text.strip()
    if len(trimmed) < MIN_RESUME_LENGTH:
        raise ResumeValidationError(
            f"Resume text must be at least {MIN_RESUME_LENGTH} characters long"
        )
    return trimmed


# ============================================================
# RESUME REVIEW SERVICE
# ============================================================

class ResumeReviewService:
    """
    Resume review workflow:
    1. Validate input text
    2. Review with Gemini
    3. Validate JSON output
    4. Store the review in resume_reviews (optional)
    """

    @property
    def ai_client(self):
        return get_gemini_client()

    def analyze(self, resume_text: str) -> dict:
        """Review a resume without storing anything."""
        trimmed = check_resume_text(resume_text)
        raw = self.ai_client.analyze_resume(trimmed)
        return validate_resume_analysis(raw)

    def review_and_store(self, user_id: str, resume_text: str) -> dict:
        """
        Review a resume and persist the result.

        Returns:
            The inserted resume_reviews row as a dict.
        """
        trimmed = check_resume_text(resume_text)
        analysis = validate_resume_analysis(self.ai_client.analyze_resume(trimmed))

        try:
            with get_db_session() as db:
                result = db.execute(
                    text("""
                        INSERT INTO resume_reviews (user_id, resume_text, ats_score, overall_rating, analysis)
                        VALUES (:user_id, :resume_text, :ats_score, :overall_rating, CAST(:analysis AS jsonb))
                        RETURNING id, user_id, resume_text, ats_score, overall_rating, analysis, created_at
                    """),
                    {
                        "user_id": user_id,
                        "resume_text": trimmed,
                        "ats_score": analysis["ats_score"],
                        "overall_rating": analysis["overall_rating"],
                        "analysis": json.dumps({
                            "strengths": analysis["strengths"],
                            "weaknesses": analysis["weaknesses"],
                            "key_improvements": analysis["key_improvements"],
                            "ats_analysis": analysis["ats_analysis"],
                            "confidence_boost": analysis["confidence_boost"]
                        })
                    }
                )
                row = dict(result.mappings().first())
        except IntegrityError as e:
            logger.error("Resume review insert rejected for user %s: %s", user_id, e.orig)
            raise UserNotFoundError("User not found in database. Please log out and log in again.") from e

        logger.info("Stored resume review %s (ats_score=%s) for user %s",
                    row["id"], row["ats_score"], user_id)
        row["id"] = str(row["id"])
        row["user_id"] = str(row["user_id"])
        return row

    def match(self, resume_text: str, job_description: str) -> dict:
        """Compare a resume with a job description."""
        trimmed = check_resume_text(resume_text)
        if not job_description or not job_description.strip():
            raise ResumeValidationError("job_description is required")
        raw = self.ai_client.match_resume_to_job(trimmed, job_description.strip())
        return validate_resume_match(raw)


def list_reviews(user_id: str, limit: int = REVIEW_HISTORY_LIMIT) -> List[dict]:
    """Latest reviews for a user, newest first."""
    rows = execute_raw_sql("""
        SELECT id, user_id, resume_text, ats_score, overall_rating, analysis, created_at
        FROM resume_reviews
        WHERE user_id = :user_id
        ORDER BY created_at DESC
        LIMIT :limit
    """, {"user_id": user_id, "limit": limit})
    for row in rows:
        row["id"] = str(row["id"])
        row["user_id"] = str(row["user_id"])
    return rows


# ============================================================
# HEALTH CHECK
# ============================================================

def run_health_checks() -> dict:
    """
    Check database, Gemini and the analyser end to end.
    Every check is reported; none raises.
    """
    checks = {}

    try:
        execute_raw_sql("SELECT id FROM resume_reviews LIMIT 1")
        checks["supabase"] = {"status": "ok", "message": "Database connection successful"}
    except Exception as e:
        logger.error("Health check: database failed: %s", e)
        checks["supabase"] = {"status": "error", "message": str(e) or "Database connection failed"}

    try:
        client = get_gemini_client()
        if client.test_connection():
            checks["gemini"] = {"status": "ok", "message": "Gemini API is responding correctly"}
        else:
            checks["gemini"] = {"status": "error", "message": "Gemini API returned an unexpected response"}
    except Exception as e:
        logger.error("Health check: Gemini failed: %s", e)
        checks["gemini"] = {"status": "error", "message": str(e)}

    try:
        analysis = get_resume_reviewer().analyze(SAMPLE_RESUME)
        checks["resume_analysis"] = {
            "status": "ok",
            "message": f"Resume analysis working (test score: {analysis['ats_score']})"
        }
    except Exception as e:
        logger.error("Health check: resume analysis failed: %s", e)
        checks["resume_analysis"] = {"status": "error", "message": str(e) or "Resume analysis failed"}

    overall = all(check["status"] == "ok" for check in checks.values())
    return {"status": "healthy" if overall else "unhealthy", "checks": checks, "overall": overall}


def get_resume_reviewer() -> ResumeReviewService:
    """Get resume review service instance."""
    return ResumeReviewService()
