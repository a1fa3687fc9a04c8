# aptis_practice/core/ai_services.py
import json
import logging
from typing import Any, Optional

from groq import Groq

from .config import config
from .errors import GenerationFailed
from .prompts import PromptTemplates

logger = logging.getLogger(__name__)

class AIService:
    """Structured content generation through the Groq chat API"""

    def __init__(self, client: Optional[Groq] = None):
        """Initialize Groq client"""
        self.client = client
        if self.client is None:
            self._init_groq_client()

    def _init_groq_client(self):
        """Initialize Groq client from configuration"""
        if not config.GROQ_API_KEY:
            raise RuntimeError("GROQ_API_KEY not provided")

        self.client = Groq(api_key=config.GROQ_API_KEY, timeout=config.GROQ_TIMEOUT)
        logger.info("✅ Groq client initialized")

    def generate_json(self, prompt: str) -> Any:
        """Single model call constrained to JSON output; returns the parsed document"""
        try:
            completion = self.client.chat.completions.create(
                model=config.GROQ_MODEL,
                messages=[
                    {"role": "system", "content": PromptTemplates.SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                temperature=config.GROQ_TEMPERATURE,
                max_completion_tokens=config.GROQ_MAX_TOKENS,
                response_format={"type": "json_object"}
            )
        except Exception as e:
            logger.error(f"❌ Model call failed: {e}")
            raise GenerationFailed(f"Model call failed: {e}") from e

        if not completion.choices or not completion.choices[0].message.content:
            raise GenerationFailed("Model returned no content")

        json_text = completion.choices[0].message.content.strip()
        try:
            return json.loads(json_text)
        except json.JSONDecodeError as e:
            logger.error(f"❌ Model returned unparsable JSON: {e}")
            raise GenerationFailed(f"Model returned invalid JSON: {e}") from e

# Singleton pattern for AI service
_ai_service = None

def get_ai_service() -> AIService:
    """Get AI service instance (singleton)"""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service

def close_ai_service():
    """Close AI service instance"""
    global _ai_service
    if _ai_service:
        _ai_service = None
