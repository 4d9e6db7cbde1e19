import requests
from typing import Optional, Protocol
from constants import GEMINI_API_KEY, GEMINI_MODEL, GEMINI_TIMEOUT_SECONDS
from logging_config import get_logger

logger = get_logger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

CHAT_PROMPT = """{user_input}

Take the user's input above and respond as a supportive chatbot. Keep answers short, clear, and motivating, with a positive and encouraging tone. Focus on actionable steps and uplifting guidance instead of long explanations.

If the input contains any mention of self-harm or suicide, do not continue the conversation. Instead, reply only with a short, caring message pointing the user to a suicide prevention helpline and to the anonymous peer support rooms."""

ASSESSMENT_PROMPT = "Please analyze these PHQ-9 answers and give a compassionate psychological response in around 6-7 words:\n{answers}"


class ReplyGenerationError(Exception):
    pass


class ReplyGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


class GeminiReplyGenerator:
    def __init__(self, api_key: Optional[str] = GEMINI_API_KEY, model: str = GEMINI_MODEL,
                 timeout: float = GEMINI_TIMEOUT_SECONDS, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()

    def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise ReplyGenerationError("GEMINI_API_KEY is not configured")
        body = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        try:
            response = self.session.post(
                GEMINI_URL.format(model=self.model),
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Gemini request failed for model {self.model}: {e}")
            raise ReplyGenerationError(str(e)) from e

        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected Gemini response shape: {data!r:.200}")
            raise ReplyGenerationError("No reply in response") from e
        reply = "".join(part.get("text", "") for part in parts).strip()
        logger.debug(f"Generated reply of {len(reply)} chars")
        return reply
