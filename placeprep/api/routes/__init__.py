"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from placeprep.api.routes.auth_routes import router as auth_router
from placeprep.api.routes.student_routes import router as student_router
from placeprep.api.routes.resume_routes import router as resume_router
from placeprep.api.routes.exam_routes import aptitude_router, technical_router
from placeprep.api.routes.interview_routes import router as interview_router
from placeprep.api.routes.admin_routes import router as admin_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(student_router)
api_router.include_router(resume_router)
api_router.include_router(aptitude_router)
api_router.include_router(technical_router)
api_router.include_router(interview_router)
api_router.include_router(admin_router)
