# tests/conftest.py
import asyncio
from typing import Any, List, Optional

import pytest
from fastapi.testclient import TestClient

from aptis_practice.core.config import config
from aptis_practice.core.errors import ContentError
from aptis_practice.core.schemas import GeneratedContent, TestType, validate_content
from aptis_practice.core.static_tasks import get_speaking_tasks, get_writing_tasks


# ==================== Sample content ====================

def mcq(i: int, prompt_key: str = "question") -> dict:
    return {
        prompt_key: f"Question {i}: choose the right word.",
        "options": [f"right {i}", f"wrong {i}a", f"wrong {i}b", f"wrong {i}c"],
        "correctAnswer": f"right {i}"
    }


def grammar_payload(count: int = 25) -> List[dict]:
    return [mcq(i) for i in range(count)]


def reading_payload(count: int = 5) -> dict:
    return {
        "type": "long-comprehension",
        "title": "The Future of Remote Work",
        "instructions": "Read the text and answer the questions.",
        "passage": "Remote work has changed how companies hire.\n\nMany staff now live far from the office.",
        "questions": [mcq(i, "questionText") for i in range(count)]
    }


def listening_payload(count: int = 4) -> dict:
    return {
        "title": "Weekend plans",
        "instructions": "Listen to the conversation and answer the questions.",
        "transcript": "A: Are you free on Saturday? B: Yes, let's go to the market.",
        "questions": [mcq(i) for i in range(count)]
    }


PAYLOADS = {
    TestType.GRAMMAR_VOCABULARY: grammar_payload,
    TestType.READING: reading_payload,
    TestType.LISTENING: listening_payload,
}


def make_content(test_type: TestType) -> GeneratedContent:
    if test_type is TestType.WRITING:
        return GeneratedContent(test_type=test_type, payload=get_writing_tasks())
    if test_type is TestType.SPEAKING:
        return GeneratedContent(test_type=test_type, payload=get_speaking_tasks())
    return validate_content(test_type, PAYLOADS[test_type]())


# ==================== Fakes ====================

class FakeAIService:
    """Stands in for the Groq-backed AIService"""

    def __init__(self, response: Any = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.prompts: List[str] = []

    def generate_json(self, prompt: str) -> Any:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        if "reading comprehension" in prompt:
            return reading_payload()
        if "listening" in prompt:
            return listening_payload()
        return {"questions": grammar_payload()}


class FakeClient:
    """GenerationClient double; ``gate`` holds responses until it is set"""

    def __init__(self, error: Optional[ContentError] = None, gate: Optional[asyncio.Event] = None):
        self.error = error
        self.gate = gate
        self.requests: List[TestType] = []

    async def request_content(self, test_type) -> GeneratedContent:
        test_type = TestType.parse(test_type)
        self.requests.append(test_type)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return make_content(test_type)


class FakeTTS:
    def __init__(self):
        self.texts: List[str] = []

    async def synthesize(self, text: str) -> bytes:
        self.texts.append(text)
        return b"ID3-fake-audio"


# ==================== Fixtures ====================

@pytest.fixture(autouse=True)
def groq_key(monkeypatch):
    monkeypatch.setattr(config, "GROQ_API_KEY", "test-key")


@pytest.fixture
def fake_ai():
    return FakeAIService()


@pytest.fixture
def app(fake_ai):
    from aptis_practice.main import app
    from aptis_practice.services.generation_service import GenerationService, get_generation_service

    app.dependency_overrides[get_generation_service] = lambda: GenerationService(fake_ai)
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
