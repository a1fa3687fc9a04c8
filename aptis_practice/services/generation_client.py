# aptis_practice/services/generation_client.py
"""
Client side of the /generate contract.

Writing and Speaking are served from the fixed task sets without a network
call. Everything else is one POST to the generation service whose body is
validated against the schema for the requested type before it is returned.
"""

import logging
from typing import Any, Optional

import httpx

from ..core.config import config
from ..core.errors import GenerationFailed, InvalidTestType, SchemaViolation
from ..core.schemas import GeneratedContent, TestType, validate_content
from ..core.static_tasks import get_speaking_tasks, get_writing_tasks

logger = logging.getLogger(__name__)

IN_PROCESS_BASE_URL = "http://aptis-practice"

class GenerationClient:
    """Requests section content over HTTP; a single attempt, no retries"""

    def __init__(self, base_url: str, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout if timeout is not None else config.GENERATION_CLIENT_TIMEOUT,
            transport=transport
        )

    @classmethod
    def for_app(cls, app) -> "GenerationClient":
        """Remote service when GENERATION_API_URL is set, otherwise ``app`` itself in-process"""
        if config.GENERATION_API_URL:
            logger.info(f"🌐 Generation client targeting {config.GENERATION_API_URL}")
            return cls(config.GENERATION_API_URL)
        return cls(IN_PROCESS_BASE_URL, transport=httpx.ASGITransport(app=app))

    async def request_content(self, test_type: Any) -> GeneratedContent:
        test_type = TestType.parse(test_type)

        if test_type is TestType.WRITING:
            return GeneratedContent(test_type=test_type, payload=get_writing_tasks())
        if test_type is TestType.SPEAKING:
            return GeneratedContent(test_type=test_type, payload=get_speaking_tasks())

        try:
            response = await self._client.post("/generate", json={"testType": test_type.value})
        except httpx.HTTPError as e:
            logger.error(f"❌ Generation request failed: {e}")
            raise GenerationFailed(f"Generation request failed: {e}") from e

        if response.status_code == 400:
            raise InvalidTestType(test_type.value)
        if response.status_code != 200:
            raise GenerationFailed(self._error_detail(response))

        try:
            data = response.json()
        except ValueError as e:
            raise SchemaViolation("Response body is not valid JSON") from e

        return validate_content(test_type, data)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"Generation service returned {response.status_code}"
        if isinstance(body, dict):
            return str(body.get("details") or body.get("error") or response.status_code)
        return f"Generation service returned {response.status_code}"

    async def aclose(self):
        await self._client.aclose()
