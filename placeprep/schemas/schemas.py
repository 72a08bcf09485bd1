"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum
from uuid import UUID


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "STUDENT"
    admin = "ADMIN"


class AptitudeType(str, Enum):
    quantitative = "quantitative"
    logical = "logical"
    verbal = "verbal"


class ExamDifficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class InterviewDifficulty(str, Enum):
    easy = "Easy"
    medium = "Medium"
    hard = "Hard"


class ImprovementPriority(str, Enum):
    high = "High"
    medium = "Medium"
    low = "Low"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2, max_length=100)
    department: Optional[str] = None
    year: Optional[int] = Field(None, ge=1, le=6)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: str
    full_name: Optional[str] = None

class UserResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: str
    department: Optional[str] = None
    year: Optional[int] = None
    is_active: bool
    created_at: datetime


# ============================================================
# STUDENT PROFILE SCHEMAS
# ============================================================

class StudentProfile(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: str
    department: Optional[str] = None
    year: Optional[int] = None
    resume_text: Optional[str] = None
    resume_url: Optional[str] = None
    skills: Optional[List[str]] = None
    career_goal: Optional[str] = None
    interests: Optional[List[str]] = None
    target_company_type: Optional[str] = None

class ProfileResponse(BaseModel):
    profile: StudentProfile

class ProfileUpdate(BaseModel):
    """Only fields present in the request body are written."""
    resume_text: Optional[str] = None
    resume_url: Optional[str] = None
    skills: Optional[List[str]] = None
    career_goal: Optional[str] = None
    interests: Optional[List[str]] = None
    target_company_type: Optional[str] = None

class ProfileUpdateResponse(BaseModel):
    success: bool = True
    profile: StudentProfile
    message: str = "Profile updated successfully"

class ResumeUploadResponse(BaseModel):
    success: bool
    message: str
    filename: Optional[str] = None
    characters: int = 0
    preview: str = ""


# ============================================================
# RESUME REVIEW SCHEMAS
# ============================================================

class ResumeTextRequest(BaseModel):
    resume_text: str = ""

class ResumeMatchRequest(BaseModel):
    resume_text: str = ""
    job_description: str = ""

class KeyImprovement(BaseModel):
    category: str
    suggestion: str
    priority: ImprovementPriority = ImprovementPriority.medium

class ATSAnalysis(BaseModel):
    keywords_match: int = 0
    formatting_score: int = 0
    content_quality: int = 0

class ResumeAnalysis(BaseModel):
    ats_score: int
    overall_rating: str
    strengths: List[str] = []
    weaknesses: List[str] = []
    key_improvements: List[KeyImprovement] = []
    ats_analysis: ATSAnalysis
    confidence_boost: str = ""

class ResumeAnalyzeResponse(BaseModel):
    success: bool = True
    analysis: ResumeAnalysis
    message: str = "Resume analyzed successfully"

class ResumeReview(BaseModel):
    id: str
    user_id: str
    resume_text: str
    ats_score: int
    overall_rating: str
    analysis: dict
    created_at: datetime

class ResumeReviewResponse(BaseModel):
    success: bool = True
    review: ResumeReview
    message: str = "Resume reviewed successfully"

class ResumeReviewListResponse(BaseModel):
    reviews: List[ResumeReview]

class MatchImprovement(BaseModel):
    title: str
    suggestion: str

class MatchMetrics(BaseModel):
    keywords_in_resume: int = 0
    total_keywords_in_job_description: int = 0

class ResumeMatchResponse(BaseModel):
    match_score: int
    metrics: MatchMetrics
    matched_keywords: List[str] = []
    missing_skills: str = ""
    key_improvements: List[MatchImprovement] = []
    feedback: str = ""


# ============================================================
# EXAM SCHEMAS
# ============================================================

class ExamQuestion(BaseModel):
    id: int
    question_id: str
    question: str
    options: List[Optional[str]]
    difficulty: Optional[str] = None
    type: Optional[str] = None
    topic: Optional[str] = None

class ExamGenerateResponse(BaseModel):
    success: bool = True
    questions: List[ExamQuestion]
    summary: str
    total_questions: int
    answers_token: str

class SubmittedAnswer(BaseModel):
    question_id: int
    selected_answer: Optional[int] = None

class ExamSubmitRequest(BaseModel):
    answers: List[SubmittedAnswer]
    answers_token: str = Field(..., min_length=1)
    time_taken_seconds: Optional[int] = Field(None, ge=0)
    tab_switches: int = Field(0, ge=0)
    violations: int = Field(0, ge=0)

class ExamResult(BaseModel):
    id: str
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    score_percentage: float
    time_taken: Optional[int] = None
    test_date: Optional[datetime] = None

class ExamSubmitResponse(BaseModel):
    success: bool = True
    result: ExamResult
    message: str

class ExamStats(BaseModel):
    total_tests: int
    average_score: float
    best_score: float
    latest_score: float
    improvement_trend: float

class ExamHistoryResponse(BaseModel):
    success: bool = True
    history: List[dict]
    stats: Optional[ExamStats] = None


# ============================================================
# INTERVIEW SCHEMAS
# ============================================================

class SessionResponse(BaseModel):
    session_id: str
    started_at: datetime
    total_score: Optional[float] = None

class SessionEndResponse(SessionResponse):
    ended_at: datetime
    responses_count: int = 0

class InterviewQuestionResponse(BaseModel):
    question_id: str
    question_text: str
    role_type: Optional[str] = None
    topic: str
    difficulty: Optional[str] = None

class PersonalizedQuestionResponse(InterviewQuestionResponse):
    priority_reason: str

class InterviewContextResponse(BaseModel):
    session_id: str
    context: str
    profile: dict
    performance_metrics: List[dict] = []

class EvaluateRequest(BaseModel):
    question_id: UUID
    student_answer: Optional[str] = None
    transcribed_answer: Optional[str] = None
    audio_url: Optional[str] = None
    role_type: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None

class AnswerEvaluation(BaseModel):
    score: float
    technical_accuracy: float
    communication_clarity: float
    interview_readiness: float
    strengths: str
    weaknesses: str
    ideal_answer: str
    feedback: str

class EvaluateResponse(BaseModel):
    success: bool = True
    response_id: str
    evaluation: AnswerEvaluation
    session_id: str

class PerformanceStatistics(BaseModel):
    total_attempts: int
    overall_avg_score: float
    topics_practiced: int
    weak_topics_count: int
    strong_topics_count: int

class PerformanceResponse(BaseModel):
    metrics: List[dict]
    statistics: PerformanceStatistics
    weak_topics: List[dict]
    strong_topics: List[dict]

class SpeechAnalysisRequest(BaseModel):
    transcript: str = ""
    duration_sec: float = Field(..., ge=0)

class SpeechAnalysisResponse(BaseModel):
    duration_sec: float
    word_count: int
    words_per_minute: float
    filler_count: int
    clarity_score: float
    notes: List[str]
    pace_comment: str
    filler_comment: str


# ============================================================
# ADMIN SCHEMAS
# ============================================================

class AdminStatsResponse(BaseModel):
    total_users: int
    students: int
    admins: int
    active_users: int

class UserActiveUpdate(BaseModel):
    is_active: bool

class MCQCreate(BaseModel):
    question_text: str = Field(..., min_length=5)
    options: List[str] = Field(..., min_length=4, max_length=4)
    correct_answer: int = Field(..., ge=0, le=3)

class AptitudeQuestionCreate(MCQCreate):
    question_type: AptitudeType
    difficulty: ExamDifficulty = ExamDifficulty.medium

class TechnicalQuestionCreate(MCQCreate):
    topic: str = Field(..., min_length=2)
    difficulty: ExamDifficulty

class InterviewQuestionCreate(BaseModel):
    question_text: str = Field(..., min_length=5)
    role_type: str
    topic: str
    difficulty: InterviewDifficulty = InterviewDifficulty.medium

class CreatedResponse(BaseModel):
    id: str
    message: str


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
