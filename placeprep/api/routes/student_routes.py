"""
Student Routes

GET /students/profile - Get own profile
PUT /students/profile - Update profile (only fields present in the body)
POST /students/resume/upload - Upload resume (PDF/DOCX/TXT), stored as resume_text
GET /students/resume/formats - Get supported formats
"""

import logging

from fastapi import APIRouter, HTTPException, Depends, UploadFile, File
from sqlalchemy import text

from placeprep.db.postgres import get_db_session, fetch_one
from placeprep.core.auth import get_current_student
from placeprep.utils.file_upload import extract_resume_text, supported_formats, PREVIEW_CHARS
from placeprep.schemas.schemas import (
    ProfileResponse, ProfileUpdate, ProfileUpdateResponse, ResumeUploadResponse, StudentProfile
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])

PROFILE_SQL = """
    SELECT id, full_name, email, department, year, resume_text, resume_url,
           skills, career_goal, interests, target_company_type
    FROM users WHERE id = :id
"""


def load_profile(user_id: str) -> StudentProfile:
    row = fetch_one(PROFILE_SQL, {"id": user_id})
    if not row:
        raise HTTPException(status_code=404, detail="Student not found")
    row["id"] = str(row["id"])
    return StudentProfile(**row)


def clean_profile_updates(data: ProfileUpdate) -> dict:
    """Fields present in the body, with '' and [] stored as NULL."""
    updates = {}
    for field, value in data.model_dump(exclude_unset=True).items():
        if isinstance(value, str):
            value = value.strip() or None
        elif isinstance(value, list):
            value = [item.strip() for item in value if item and item.strip()] or None
        updates[field] = value
    return updates


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(student: dict = Depends(get_current_student)):
    """Get current student's profile."""
    return ProfileResponse(profile=load_profile(student["user_id"]))


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(data: ProfileUpdate, student: dict = Depends(get_current_student)):
    """Update student profile. Only provided fields are updated."""
    updates = clean_profile_updates(data)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    assignments = ", ".join(f"{field} = :{field}" for field in updates)
    with get_db_session() as db:
        db.execute(
            text(f"UPDATE users SET {assignments} WHERE id = :id"),
            {**updates, "id": student["user_id"]}
        )

    logger.info("Updated profile fields %s for %s", sorted(updates), student["user_id"])
    return ProfileUpdateResponse(profile=load_profile(student["user_id"]))


@router.post("/resume/upload", response_model=ResumeUploadResponse)
async def upload_resume(
    file: UploadFile = File(..., description="Resume file (PDF, DOCX, or TXT)"),
    student: dict = Depends(get_current_student)
):
    """
    Upload a resume and store its text on the profile.

    Supported formats: PDF, DOCX, TXT (max 5MB)
    """
    resume_text, filename = await extract_resume_text(file)

    with get_db_session() as db:
        db.execute(
            text("UPDATE users SET resume_text = :resume_text WHERE id = :id"),
            {"resume_text": resume_text, "id": student["user_id"]}
        )

    return ResumeUploadResponse(
        success=True,
        message=f"Resume uploaded. {len(resume_text)} characters extracted.",
        filename=filename,
        characters=len(resume_text),
        preview=resume_text[:PREVIEW_CHARS]
    )


@router.get("/resume/formats")
async def resume_formats():
    """Get supported resume file formats."""
    return supported_formats()
