"""
PlacePrep - Main Application

FastAPI backend with:
- Supabase PostgreSQL for users, question banks, results and interview data
- Gemini for resume review and interview evaluation
- JWT authentication (students and admins)
- Dashboard served from /frontend/public

Run: uvicorn placeprep.main:app --reload
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse, JSONResponse

from placeprep import __version__
from placeprep.api.routes import api_router
from placeprep.core.config import get_settings
from placeprep.core.logging_config import setup_logging
from placeprep.db.postgres import test_postgres_connection

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

# Get the project root directory
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
FRONTEND_DIR = os.path.join(PROJECT_ROOT, "frontend", "public")

# Create FastAPI app
app = FastAPI(
    title="PlacePrep",
    description="""
    Student placement preparation platform.

    ## Features
    - **Authentication**: JWT-based auth for students and admins
    - **Profile**: Skills, interests, career goal, resume upload
    - **Resume Review**: Gemini ATS review, review history, job matching
    - **Exams**: Aptitude and technical MCQ tests with signed answer keys
    - **Mock Interview**: Personalised questions, AI evaluation, speech heuristics
    - **Admin**: Users, stats, question banks
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")

if os.path.exists(FRONTEND_DIR):
    app.mount("/static", StaticFiles(directory=FRONTEND_DIR), name="static")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/", tags=["Frontend"])
async def serve_frontend():
    """Serve the dashboard."""
    index_path = os.path.join(FRONTEND_DIR, "index.html")
    if os.path.exists(index_path):
        return FileResponse(index_path)
    return {"status": "healthy", "app": "PlacePrep", "message": "Frontend not found. API is running."}


@app.get("/health", tags=["Health"])
async def health_check():
    """Database connectivity and LLM configuration."""
    return {
        "status": "healthy",
        "postgres": "connected" if test_postgres_connection() else "disconnected",
        "gemini": "configured" if settings.gemini_configured else "not configured"
    }
