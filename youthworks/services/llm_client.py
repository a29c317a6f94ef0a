"""
LLM Client - CV parsing through an OpenAI-compatible chat API.

The default endpoint is DeepSeek, which speaks the OpenAI protocol, so the
openai library is used directly with a custom base_url.

The LLM is used ONLY to turn free CV text into structured JSON
(skills, education, experience). Callers must treat it as optional:
when no API key is configured, or the call fails, they fall back to
keyword extraction.
"""

import json
import logging
from typing import Optional

from openai import OpenAI

from youthworks.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

CV_SYSTEM_PROMPT = """You are a CV parser. Extract information and return ONLY valid JSON.
Output format:
{
  "skills": ["skill1", "skill2"],
  "education": [{"degree": "string", "field": "string", "institution": "string"}],
  "experience": [{"company": "string", "role": "string", "duration": "string"}],
  "languages": ["language1"],
  "summary": "string or null"
}
Return ONLY the JSON, no explanation."""


class LLMClient:
    """
    Thin wrapper around the chat completions endpoint.
    """

    def __init__(self, api_key: str = None, base_url: str = None, model: str = None):
        self.client = OpenAI(
            api_key=api_key or settings.llm_api_key,
            base_url=base_url or settings.llm_base_url,
        )
        self.model = model or settings.llm_model

    def _call_api(self, system_prompt: str, user_content: str, max_tokens: int = 1000) -> str:
        """Call the chat endpoint and return the raw text of the first choice."""
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            max_tokens=max_tokens,
            temperature=0.1,  # Low temp for consistent structured output
        )
        return response.choices[0].message.content

    @staticmethod
    def extract_json(text: str):
        """
        Parse JSON from a model response.
        Handles responses wrapped in markdown code fences.
        """
        text = text.strip()
        if text.startswith("```json"):
            text = text[7:]
        if text.startswith("```"):
            text = text[3:]
        if text.endswith("```"):
            text = text[:-3]
        return json.loads(text.strip())

    def parse_cv(self, cv_text: str) -> dict:
        """Parse CV text into structured data."""
        # Long CVs are cut to keep the request small
        response = self._call_api(CV_SYSTEM_PROMPT, cv_text[:12000], max_tokens=800)
        return self.extract_json(response)

    def test_connection(self) -> bool:
        """Test if the LLM endpoint is reachable"""
        try:
            response = self._call_api(
                "You are a test assistant.",
                "Reply with exactly: OK",
                max_tokens=10,
            )
            return "OK" in response.upper()
        except Exception:
            logger.exception("LLM connection failed")
            return False


# Singleton instance
_llm_client: Optional[LLMClient] = None


def get_llm_client() -> Optional[LLMClient]:
    """Get or create the LLM client. Returns None when no API key is configured."""
    global _llm_client
    if not settings.llm_enabled:
        return None
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client
