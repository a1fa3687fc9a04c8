# aptis_practice/core/tts_processor.py
"""
Listening audio: EdgeTTS synthesis of the transcript with a voice fallback
"""

import asyncio
import logging
from typing import AsyncGenerator, List, Optional

import edge_tts

from .config import config
from .errors import SpeechSynthesisFailed

logger = logging.getLogger(__name__)

class TTSProcessor:
    """Synthesizes listening transcripts with EdgeTTS"""

    def __init__(self, voice: Optional[str] = None, rate: Optional[str] = None, timeout: float = 30.0):
        self.voice = voice or config.TTS_VOICE
        self.rate = rate or config.TTS_RATE
        self.timeout = timeout
        self.available_voices: Optional[List[str]] = None
        self._voices_checked = False

    async def _check_voice_availability(self):
        """Check if configured voice is available"""
        if self._voices_checked:
            return

        try:
            voices = await edge_tts.list_voices()
            self.available_voices = [voice["ShortName"] for voice in voices]

            if self.voice not in self.available_voices:
                logger.warning(f"⚠️ Voice '{self.voice}' not available. Switching to fallback.")
                english_voices = [v for v in self.available_voices if v.startswith("en-")]
                if english_voices:
                    self.voice = english_voices[0]
                    logger.info(f"🔊 Using fallback voice: {self.voice}")

        except Exception as e:
            logger.warning(f"⚠️ Could not verify voice availability: {e}")

        self._voices_checked = True

    async def stream(self, text: str) -> AsyncGenerator[bytes, None]:
        """Yield MP3 audio chunks for ``text``"""
        await self._check_voice_availability()

        communicate = edge_tts.Communicate(text=text, voice=self.voice, rate=self.rate)
        async for chunk in communicate.stream():
            if chunk["type"] == "audio" and chunk["data"]:
                yield chunk["data"]

    async def synthesize(self, text: str) -> bytes:
        """Whole transcript as one MP3 document"""
        if not text or not text.strip():
            raise SpeechSynthesisFailed("Nothing to synthesize")

        audio_data = b""

        async def collect_audio():
            nonlocal audio_data
            async for chunk in self.stream(text):
                audio_data += chunk

        try:
            await asyncio.wait_for(collect_audio(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"❌ TTS timed out after {self.timeout}s")
            raise SpeechSynthesisFailed("Speech synthesis timed out") from e
        except Exception as e:
            logger.error(f"❌ TTS failed: {e}")
            raise SpeechSynthesisFailed(f"Speech synthesis failed: {e}") from e

        if not audio_data:
            raise SpeechSynthesisFailed("No audio data received")

        logger.info(f"🔊 Generated {len(audio_data)} bytes of listening audio with voice {self.voice}")
        return audio_data

