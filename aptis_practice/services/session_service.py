# aptis_practice/services/session_service.py
import logging
from typing import Any, Dict, Optional

from ..core.capture import CaptureDevice
from ..core.config import config
from ..core.errors import SessionNotFound, SpeechSynthesisFailed
from ..core.navigation import NavigationController
from ..core.state_machine import (
    AudioChunk, MicrophoneFailed, PlayAudio, PlaybackEnded, PlaybackFailed, SectionStateMachine,
    StartPreparation
)
from ..core.tts_processor import TTSProcessor
from ..core.utils import DateTimeUtils, generate_session_id

logger = logging.getLogger(__name__)

class PracticeSession:
    """One candidate's browser session: a navigation controller and a microphone"""

    def __init__(self, session_id: str, navigation: NavigationController, capture_device: CaptureDevice):
        self.session_id = session_id
        self.navigation = navigation
        self.capture_device = capture_device
        self.created_at = DateTimeUtils.get_current_timestamp()
        self.last_activity = self.created_at

    def touch(self):
        self.last_activity = DateTimeUtils.get_current_timestamp()

    def snapshot(self) -> Dict[str, Any]:
        data = {"sessionId": self.session_id}
        data.update(self.navigation.snapshot())
        return data

    def close(self):
        self.navigation.close()


class SessionService:
    """In-memory store of practice sessions"""

    def __init__(self, client, tts: Optional[TTSProcessor] = None, autotick: bool = True,
                 tick_interval: float = 1.0, expiration_seconds: Optional[int] = None):
        self.client = client
        self.tts = tts
        self.autotick = autotick
        self.tick_interval = tick_interval
        self.expiration_seconds = expiration_seconds or config.SESSION_EXPIRATION_SECONDS
        self.sessions: Dict[str, PracticeSession] = {}

    # ==================== Lifecycle ====================

    def create_session(self) -> PracticeSession:
        self.cleanup_expired()

        capture_device = CaptureDevice()
        navigation = NavigationController(
            self.client,
            capture_device=capture_device,
            autotick=self.autotick,
            tick_interval=self.tick_interval
        )
        session = PracticeSession(generate_session_id(), navigation, capture_device)
        self.sessions[session.session_id] = session
        logger.info(f"✅ Session created: {session.session_id}")
        return session

    def get_session(self, session_id: str) -> PracticeSession:
        session = self.sessions.get(session_id)
        if session is None or self._is_expired(session):
            if session is not None:
                self.close_session(session_id)
            raise SessionNotFound(session_id)
        session.touch()
        return session

    def close_session(self, session_id: str):
        session = self.sessions.pop(session_id, None)
        if session is not None:
            session.close()

    def cleanup_expired(self) -> int:
        """Close sessions idle for longer than the expiration window"""
        expired = [sid for sid, session in list(self.sessions.items()) if self._is_expired(session)]
        for session_id in expired:
            self.close_session(session_id)

        if expired:
            logger.info(f"🧹 Cleanup: removed {len(expired)} expired sessions")
        return len(expired)

    def close_all(self):
        for session_id in list(self.sessions):
            self.close_session(session_id)
        logger.info("✅ All sessions closed")

    def _is_expired(self, session: PracticeSession) -> bool:
        return DateTimeUtils.get_current_timestamp() - session.last_activity > self.expiration_seconds

    # ==================== Speaking ====================

    def start_recording(self, session: PracticeSession, microphone: Optional[str] = None) -> SectionStateMachine:
        """Begin preparation for the current speaking task"""
        machine = session.navigation.require_section()
        if microphone == "denied":
            session.capture_device.deny()
        else:
            session.capture_device.allow()
        machine.handle_event(StartPreparation())
        return machine

    def add_audio(self, session: PracticeSession, data: bytes) -> SectionStateMachine:
        machine = session.navigation.require_section()
        machine.handle_event(AudioChunk(data))
        return machine

    def report_microphone_failure(self, session: PracticeSession, message: str) -> SectionStateMachine:
        machine = session.navigation.require_section()
        machine.handle_event(MicrophoneFailed(message))
        return machine

    # ==================== Listening ====================

    async def listening_audio(self, session: PracticeSession) -> bytes:
        """Synthesize the transcript; each delivered audio counts as one play"""
        machine = session.navigation.require_section()
        if self.tts is None:
            raise SpeechSynthesisFailed("Speech synthesis is not configured")

        machine.handle_event(PlayAudio())
        transcript = machine.content.payload.transcript
        try:
            audio = await self.tts.synthesize(transcript)
        except BaseException:
            machine.handle_event(PlaybackFailed())
            raise

        machine.handle_event(PlaybackEnded())
        logger.info(f"🔊 Listening audio delivered ({machine.plays_left} plays left)")
        return audio

    def get_stats(self) -> Dict[str, Any]:
        return {"active_sessions": len(self.sessions)}
