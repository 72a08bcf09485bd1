"""
PlacePrep - Student Placement Preparation Platform
Resume review, MCQ exams and mock interviews with AI-assisted scoring.

Architecture:
- Supabase (PostgreSQL): users, question banks, results, interview sessions
- Gemini (OpenAI-compatible API): resume analysis and answer evaluation
- FastAPI: JSON API consumed by the browser dashboard
"""

__version__ = "1.0.0"
