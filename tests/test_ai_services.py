# tests/test_ai_services.py
import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from aptis_practice.core import tts_processor
from aptis_practice.core.ai_services import AIService
from aptis_practice.core.errors import GenerationFailed, SpeechSynthesisFailed
from aptis_practice.core.tts_processor import TTSProcessor


def groq_reply(content):
    client = MagicMock()
    message = SimpleNamespace(content=content)
    client.chat.completions.create.return_value = SimpleNamespace(choices=[SimpleNamespace(message=message)])
    return client


class TestAIService:
    def test_parses_json_reply(self):
        client = groq_reply('{"questions": []}')

        assert AIService(client).generate_json("prompt") == {"questions": []}

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][-1] == {"role": "user", "content": "prompt"}
        assert client.chat.completions.create.call_count == 1

    def test_invalid_json(self):
        with pytest.raises(GenerationFailed) as excinfo:
            AIService(groq_reply("not json {")).generate_json("prompt")
        assert "invalid JSON" in excinfo.value.detail

    def test_empty_reply(self):
        with pytest.raises(GenerationFailed):
            AIService(groq_reply("")).generate_json("prompt")

    def test_api_error(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = TimeoutError("read timeout")

        with pytest.raises(GenerationFailed) as excinfo:
            AIService(client).generate_json("prompt")
        assert "read timeout" in excinfo.value.detail
        assert client.chat.completions.create.call_count == 1


class FakeCommunicate:
    chunks = [{"type": "audio", "data": b"ID3"}, {"type": "WordBoundary"}, {"type": "audio", "data": b"-mp3"}]

    def __init__(self, text, voice, rate):
        self.text = text
        self.voice = voice
        self.rate = rate

    async def stream(self):
        for chunk in self.chunks:
            yield chunk


class TestTTSProcessor:
    @pytest.fixture(autouse=True)
    def fake_edge_tts(self, monkeypatch):
        async def list_voices():
            return [{"ShortName": "en-GB-SoniaNeural"}, {"ShortName": "fr-FR-DeniseNeural"}]

        monkeypatch.setattr(tts_processor.edge_tts, "list_voices", list_voices)
        monkeypatch.setattr(tts_processor.edge_tts, "Communicate", FakeCommunicate)

    def test_synthesize_collects_audio(self):
        audio = asyncio.run(TTSProcessor(voice="en-GB-SoniaNeural").synthesize("Hello there."))

        assert audio == b"ID3-mp3"

    def test_falls_back_to_english_voice(self):
        processor = TTSProcessor(voice="en-XX-MissingNeural")

        asyncio.run(processor.synthesize("Hello there."))

        assert processor.voice == "en-GB-SoniaNeural"

    def test_empty_text(self):
        with pytest.raises(SpeechSynthesisFailed):
            asyncio.run(TTSProcessor().synthesize("  "))

    def test_stream_failure(self, monkeypatch):
        class BrokenCommunicate(FakeCommunicate):
            async def stream(self):
                raise ConnectionError("service unavailable")
                yield

        monkeypatch.setattr(tts_processor.edge_tts, "Communicate", BrokenCommunicate)

        with pytest.raises(SpeechSynthesisFailed):
            asyncio.run(TTSProcessor().synthesize("Hello"))
