"""Profile and resume upload endpoints."""
import io

import pytest
from docx import Document

from placeprep.api.routes import student_routes
from placeprep.schemas.schemas import ProfileUpdate

PROFILE_ROW = {
    "id": "11111111-1111-1111-1111-111111111111", "full_name": "Asha Rao", "email": "asha@college.edu",
    "department": "CSE", "year": 3, "resume_text": None, "resume_url": None,
    "skills": ["Python"], "career_goal": "Backend", "interests": None, "target_company_type": None,
}


@pytest.fixture
def profile_db(monkeypatch, fake_db):
    session, factory = fake_db
    monkeypatch.setattr(student_routes, "get_db_session", factory)
    monkeypatch.setattr(student_routes, "fetch_one", lambda sql, params=None: dict(PROFILE_ROW))
    return session


def test_get_profile(student_client, profile_db):
    response = student_client.get("/api/students/profile")
    assert response.status_code == 200
    assert response.json()["profile"]["skills"] == ["Python"]


def test_clean_profile_updates_only_present_fields():
    data = ProfileUpdate.model_validate({"career_goal": "  ", "skills": [], "interests": ["ML", " "]})
    assert student_routes.clean_profile_updates(data) == {
        "career_goal": None, "skills": None, "interests": ["ML"]
    }


def test_update_profile_writes_present_fields(student_client, profile_db):
    response = student_client.put("/api/students/profile", json={"career_goal": "Data Engineer", "skills": []})

    assert response.status_code == 200
    assert response.json()["success"] is True
    sql, params = profile_db.executed[0]
    assert sql.startswith("UPDATE users SET ")
    assert "skills = :skills" in sql and "career_goal = :career_goal" in sql
    assert "interests" not in sql
    assert params["career_goal"] == "Data Engineer"
    assert params["skills"] is None
    assert "interests" not in params


def test_update_profile_empty_body(student_client, profile_db):
    response = student_client.put("/api/students/profile", json={})
    assert response.status_code == 400
    assert profile_db.executed == []


def test_upload_txt_resume(student_client, profile_db):
    content = b"Asha Rao\nPython developer\nBuilt a FastAPI service"
    response = student_client.post(
        "/api/students/resume/upload",
        files={"file": ("resume.txt", content, "text/plain")}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["characters"] == len(content.decode())
    assert body["preview"].startswith("Asha Rao")
    assert profile_db.executed[0][1]["resume_text"] == content.decode()


def test_upload_docx_resume_reads_paragraphs_and_tables(student_client, profile_db):
    doc = Document()
    doc.add_paragraph("Asha Rao")
    table = doc.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Python"
    table.rows[0].cells[1].text = "SQL"
    buffer = io.BytesIO()
    doc.save(buffer)

    response = student_client.post(
        "/api/students/resume/upload",
        files={"file": ("resume.docx", buffer.getvalue(),
                        "application/vnd.openxmlformats-officedocument.wordprocessingml.document")}
    )

    assert response.status_code == 200
    assert profile_db.executed[0][1]["resume_text"] == "Asha Rao\nPython | SQL"


def test_upload_rejects_unsupported_type(student_client, profile_db):
    response = student_client.post("/api/students/resume/upload",
                                   files={"file": ("resume.png", b"\x89PNG", "image/png")})
    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["detail"]


def test_upload_rejects_large_file(student_client, profile_db):
    response = student_client.post("/api/students/resume/upload",
                                   files={"file": ("resume.txt", b"a" * (5 * 1024 * 1024 + 1), "text/plain")})
    assert response.status_code == 413


def test_upload_rejects_empty_file(student_client, profile_db):
    response = student_client.post("/api/students/resume/upload",
                                   files={"file": ("resume.txt", b"   \n", "text/plain")})
    assert response.status_code == 400


def test_upload_rejects_corrupt_pdf(student_client, profile_db):
    response = student_client.post("/api/students/resume/upload",
                                   files={"file": ("resume.pdf", b"not really a pdf", "application/pdf")})
    assert response.status_code == 400


def test_resume_formats(client):
    body = client.get("/api/students/resume/formats").json()
    assert [f["extension"] for f in body["supported_formats"]] == [".pdf", ".docx", ".txt"]
    assert body["max_size_mb"] == 5
