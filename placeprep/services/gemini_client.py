"""
Gemini API Client

Gemini exposes an OpenAI-compatible endpoint, so we use the openai library
with a different base URL.

AI is used ONLY for:
- Resume review and resume/job matching
- Interview answer evaluation
- Interview context summaries

Every call is a single prompt with a strict JSON (or plain text) reply.
Parsed replies are normalised by the calling service before they are stored.
"""
import json
import logging
import re

from openai import OpenAI, OpenAIError

from placeprep.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class LLMError(Exception):
    """The language model could not be reached or returned nothing."""


class LLMResponseError(LLMError):
    """The language model replied, but not with parseable JSON."""


class GeminiClient:
    """
    Wrapper for the Gemini API with one method per prompt.
    """

    def __init__(self):
        if not settings.gemini_api_key:
            raise LLMError("Gemini API key is not configured")
        self.client = OpenAI(
            api_key=settings.gemini_api_key,
            base_url=settings.gemini_base_url
        )
        self.model = settings.gemini_model

    def _call_api(self, system_prompt: str, user_content: str, max_tokens: int = 1500,
                  temperature: float = 0.2) -> str:
        """
        Internal method to call the chat completions endpoint.
        Returns raw text response.
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content}
                ],
                max_tokens=max_tokens,
                temperature=temperature
            )
        except OpenAIError as e:
            logger.error("Gemini API error: %s", e)
            raise LLMError(f"Gemini API error: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise LLMError("No response from Gemini API")
        return response.choices[0].message.content.strip()

    def _extract_json(self, text: str):
        """
        Extract JSON from API response.
        Handles markdown code fences and prose around the JSON object.
        """
        text = text.strip()
        if text.startswith("```json"):
            text = text[7:]
        if text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        match = _JSON_OBJECT.search(text)
        if match:
            try:
                return json.loads(match.group(0))
            except json.JSONDecodeError:
                pass
        raise LLMResponseError("Failed to parse Gemini API response as JSON")

    def analyze_resume(self, resume_text: str) -> dict:
        """
        Review a resume for ATS readiness and content quality.
        """
        system_prompt = """You are an expert resume reviewer and ATS (applicant tracking system) specialist helping students prepare for campus placements.
Review the resume and return ONLY valid JSON.
Output format:
{
  "ats_score": number 0-100,
  "overall_rating": "Excellent" | "Good" | "Average" | "Needs Improvement",
  "strengths": ["string"],
  "weaknesses": ["string"],
  "key_improvements": [{"category": "string", "suggestion": "string", "priority": "High" | "Medium" | "Low"}],
  "ats_analysis": {"keywords_match": number 0-100, "formatting_score": number 0-100, "content_quality": number 0-100},
  "confidence_boost": "one encouraging sentence about what the student does well"
}
Give 3-5 key improvements, most important first.
Return ONLY the JSON, no explanation."""

        response = self._call_api(system_prompt, resume_text, max_tokens=2000)
        return self._extract_json(response)

    def match_resume_to_job(self, resume_text: str, job_description: str) -> dict:
        """
        Compare a resume with a job description.
        """
        system_prompt = """You are a resume expert providing feedback to job seekers.
Compare the resume with the job description and return ONLY valid JSON.
Output format:
{
  "match_score": number 0-100,
  "metrics": {"keywords_in_resume": number, "total_keywords_in_job_description": number},
  "matched_keywords": ["keyword found in both"],
  "missing_skills": "comma-separated important skills from the job description missing in the resume",
  "key_improvements": [{"title": "string", "suggestion": "specific, actionable suggestion"}],
  "feedback": "summary paragraph"
}
Give 3-5 key improvements.
Return ONLY the JSON, no explanation."""

        user_content = f"Resume Text:\n{resume_text}\n\nJob Description:\n{job_description}"
        response = self._call_api(system_prompt, user_content, max_tokens=2000)
        return self._extract_json(response)

    def evaluate_answer(self, prompt: str) -> dict:
        """
        Evaluate an interview answer. The prompt is built by the interview
        service because it carries the student's profile.
        """
        system_prompt = "You are an experienced technical interviewer. Return ONLY valid JSON, no additional text."
        response = self._call_api(system_prompt, prompt, max_tokens=2500)
        return self._extract_json(response)

    def summarize_context(self, prompt: str) -> str:
        """Free-text completion used for interview context summaries."""
        system_prompt = "You prepare interviewers. Return ONLY the requested text, no formatting or labels."
        return self._call_api(system_prompt, prompt, max_tokens=400, temperature=0.4)

    def test_connection(self) -> bool:
        """Test if the Gemini API is reachable"""
        try:
            response = self._call_api(
                "You are a test assistant.",
                'Say "OK" if you can read this.',
                max_tokens=10
            )
            return "OK" in response.upper()
        except LLMError as e:
            logger.error("Gemini connection failed: %s", e)
            return False


# Singleton instance
_gemini_client: GeminiClient = None


def get_gemini_client() -> GeminiClient:
    """Get or create Gemini client (singleton pattern)"""
    global _gemini_client
    if _gemini_client is None:
        _gemini_client = GeminiClient()
    return _gemini_client
