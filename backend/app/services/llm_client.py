"""
LLM Client
Thin async wrapper around Gemini (google-generativeai).
"""
import json
import logging
from typing import List, Dict, Any, Optional

import google.generativeai as genai

from app.config import settings

logger = logging.getLogger(__name__)

# Content-safety thresholds applied to every request
SAFETY_SETTINGS: List[Dict[str, str]] = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_MEDIUM_AND_ABOVE"},
]


class LLMError(Exception):
    """Raised when the LLM call fails or returns unusable output."""


def strip_code_fence(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[1].rsplit("```", 1)[0]
    return raw.strip()


class LLMClient:
    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model_name = model_name or settings.LLM_MODEL
        if self.api_key:
            genai.configure(api_key=self.api_key)

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    async def get_completion(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        top_k: Optional[int] = None,
        top_p: Optional[float] = None,
        json_mode: bool = False,
    ) -> str:
        """
        Send a single prompt to Gemini and return the reply text.

        Raises:
            LLMError: if no API key is configured or the request fails
        """
        if not self.available:
            raise LLMError("GEMINI_API_KEY is not configured")

        generation_config: Dict[str, Any] = {
            "temperature": settings.LLM_TEMPERATURE if temperature is None else temperature,
            "max_output_tokens": max_output_tokens or settings.LLM_MAX_TOKENS,
        }
        if top_k is not None:
            generation_config["top_k"] = top_k
        if top_p is not None:
            generation_config["top_p"] = top_p
        if json_mode:
            generation_config["response_mime_type"] = "application/json"

        model = genai.GenerativeModel(
            model_name=self.model_name,
            generation_config=generation_config,
            safety_settings=SAFETY_SETTINGS,
        )

        try:
            response = await model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise LLMError(f"Gemini API error: {e}") from e

        if not text:
            raise LLMError("Gemini returned an empty response")
        return text

    async def get_structured_completion(self, prompt: str, **kwargs) -> Dict[str, Any]:
        """
        JSON-mode completion parsed into a dict.
        """
        raw = await self.get_completion(prompt, json_mode=True, **kwargs)
        try:
            parsed = json.loads(strip_code_fence(raw))
        except json.JSONDecodeError as e:
            logger.warning(f"Gemini returned invalid JSON: {raw[:200]}")
            raise LLMError(f"Could not parse model output as JSON: {e}") from e

        if not isinstance(parsed, dict):
            raise LLMError("Expected a JSON object from the model")
        return parsed
