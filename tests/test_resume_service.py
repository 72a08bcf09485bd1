"""Resume review: output validation, input checks, storage and health report."""
import json

import pytest
from sqlalchemy.exc import IntegrityError

from placeprep.services import resume_service
from placeprep.services.gemini_client import LLMError
from placeprep.services.resume_service import (
    ResumeReviewService, ResumeValidationError, UserNotFoundError,
    check_resume_text, validate_resume_analysis, validate_resume_match, run_health_checks
)
from tests.conftest import FakeResult

LONG_RESUME = "Python developer with three years of FastAPI and PostgreSQL experience. " * 3


class FakeGemini:
    def __init__(self, analysis=None, match=None, error=None):
        self.analysis = analysis or {"ats_score": 78, "overall_rating": "Good"}
        self.match = match or {}
        self.error = error

    def analyze_resume(self, resume_text):
        if self.error:
            raise self.error
        return self.analysis

    def match_resume_to_job(self, resume_text, job_description):
        return self.match

    def test_connection(self):
        return self.error is None


@pytest.fixture
def gemini(monkeypatch):
    fake = FakeGemini()
    monkeypatch.setattr(resume_service, "get_gemini_client", lambda: fake)
    return fake


def test_validate_analysis_clamps_and_defaults():
    result = validate_resume_analysis({
        "ats_score": 140,
        "overall_rating": "outstanding",
        "strengths": ["Clear layout", ""],
        "key_improvements": [
            {"category": "Impact", "suggestion": "Quantify results", "priority": "urgent"},
            {"category": "Empty", "suggestion": ""},
            "not a dict",
        ],
        "ats_analysis": {"keywords_match": -5, "formatting_score": "88", "content_quality": None},
    })

    assert result["ats_score"] == 100
    assert result["overall_rating"] == "Average"
    assert result["strengths"] == ["Clear layout"]
    assert result["weaknesses"] == []
    assert result["key_improvements"] == [
        {"category": "Impact", "suggestion": "Quantify results", "priority": "Medium"}
    ]
    assert result["ats_analysis"] == {"keywords_match": 0, "formatting_score": 88, "content_quality": 0}
    assert result["confidence_boost"] == ""


def test_validate_analysis_clamps_infinite_scores():
    raw = json.loads('{"ats_score": 1e999, "ats_analysis": {"keywords_match": -Infinity}, '
                     '"match_score": Infinity}')

    result = validate_resume_analysis(raw)
    assert result["ats_score"] == 100
    assert result["ats_analysis"]["keywords_match"] == 0
    assert validate_resume_match(raw)["match_score"] == 100


def test_validate_analysis_keeps_known_rating_case_insensitive():
    assert validate_resume_analysis({"overall_rating": "needs improvement"})["overall_rating"] == "Needs Improvement"


def test_validate_match_normalises_lists_and_metrics():
    result = validate_resume_match({
        "match_score": "65.4",
        "metrics": {"keywords_in_resume": 30, "total_keywords_in_job_description": 20},
        "matched_keywords": "python, sql",
        "missing_skills": ["Docker", "Kubernetes"],
        "key_improvements": [{"title": "Add Docker", "suggestion": "Mention container work"}, {"title": "x"}],
    })
    assert result["match_score"] == 65
    assert result["metrics"] == {"keywords_in_resume": 20, "total_keywords_in_job_description": 20}
    assert result["matched_keywords"] == ["python", "sql"]
    assert result["missing_skills"] == "Docker, Kubernetes"
    assert result["key_improvements"] == [{"title": "Add Docker", "suggestion": "Mention container work"}]


@pytest.mark.parametrize("text", [None, "", "   ", "too short"])
def test_check_resume_text_rejects_short_input(text):
    with pytest.raises(ResumeValidationError):
        check_resume_text(text)


def test_check_resume_text_trims():
    assert check_resume_text(f"  {LONG_RESUME}  ") == LONG_RESUME.strip()


def test_analyze_validates_before_calling_gemini(monkeypatch):
    def no_client():
        raise AssertionError("Gemini must not be called for invalid input")

    monkeypatch.setattr(resume_service, "get_gemini_client", no_client)
    with pytest.raises(ResumeValidationError):
        ResumeReviewService().analyze("short")


def test_review_and_store_inserts_row(gemini, fake_db, monkeypatch):
    session, factory = fake_db
    session.results.append(FakeResult([{
        "id": "r-1", "user_id": "u-1", "resume_text": LONG_RESUME.strip(), "ats_score": 78,
        "overall_rating": "Good", "analysis": {}, "created_at": "2024-01-01T00:00:00Z",
    }]))
    monkeypatch.setattr(resume_service, "get_db_session", factory)

    row = ResumeReviewService().review_and_store("u-1", LONG_RESUME)

    assert row["id"] == "r-1"
    sql, params = session.executed[0]
    assert "INSERT INTO resume_reviews" in sql
    assert params["ats_score"] == 78
    assert params["resume_text"] == LONG_RESUME.strip()
    assert '"ats_analysis"' in params["analysis"]


def test_review_and_store_maps_foreign_key_violation(gemini, monkeypatch):
    from contextlib import contextmanager

    @contextmanager
    def failing_session():
        raise IntegrityError("INSERT", {}, Exception("violates foreign key constraint"))
        yield

    monkeypatch.setattr(resume_service, "get_db_session", failing_session)
    with pytest.raises(UserNotFoundError):
        ResumeReviewService().review_and_store("missing-user", LONG_RESUME)


def test_health_checks_report_each_failure(monkeypatch):
    def broken_sql(*args, **kwargs):
        raise RuntimeError("connection refused")

    monkeypatch.setattr(resume_service, "execute_raw_sql", broken_sql)
    monkeypatch.setattr(resume_service, "get_gemini_client", lambda: FakeGemini(error=LLMError("bad key")))

    report = run_health_checks()

    assert report["overall"] is False
    assert report["status"] == "unhealthy"
    assert report["checks"]["supabase"] == {"status": "error", "message": "connection refused"}
    assert report["checks"]["gemini"]["status"] == "error"
    assert report["checks"]["resume_analysis"]["message"] == "bad key"


def test_health_checks_all_ok(gemini, monkeypatch):
    monkeypatch.setattr(resume_service, "execute_raw_sql", lambda *a, **k: [])
    report = run_health_checks()
    assert report["overall"] is True
    assert "78" in report["checks"]["resume_analysis"]["message"]
