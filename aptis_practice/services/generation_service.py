# aptis_practice/services/generation_service.py
import asyncio
import logging
from typing import Any, Optional

from ..core.ai_services import AIService, get_ai_service
from ..core.errors import InvalidTestType
from ..core.prompts import PromptTemplates
from ..core.schemas import GeneratedContent, TestType, validate_content

logger = logging.getLogger(__name__)

class GenerationService:
    """Builds the prompt for a test type, calls the model once and validates the result"""

    def __init__(self, ai_service: Optional[AIService] = None):
        self._ai_service = ai_service

    @property
    def ai_service(self) -> AIService:
        if self._ai_service is None:
            self._ai_service = get_ai_service()
        return self._ai_service

    async def generate(self, test_type: Any) -> GeneratedContent:
        """Generate content for one of the remotely generated sections"""
        test_type = TestType.parse(test_type)
        if not test_type.is_generated:
            raise InvalidTestType(test_type.value)

        logger.info(f"🧠 Generating {test_type.value} content")
        prompt = PromptTemplates.create_generation_prompt(test_type)

        # Groq SDK is blocking
        raw = await asyncio.to_thread(self.ai_service.generate_json, prompt)

        if test_type is TestType.GRAMMAR_VOCABULARY and isinstance(raw, dict) and "questions" in raw:
            raw = raw["questions"]

        content = validate_content(test_type, raw)
        logger.info(f"✅ Generated {len(content.items)} {test_type.value} items")
        return content

# Singleton pattern for generation service
_generation_service = None

def get_generation_service() -> GenerationService:
    """Get generation service instance (singleton)"""
    global _generation_service
    if _generation_service is None:
        _generation_service = GenerationService()
    return _generation_service
