# aptis_practice/core/capture.py
"""
Microphone capture for the Speaking section.

Audio is recorded in the browser and streamed here in chunks. A
``CaptureDevice`` stands for one candidate's microphone: it hands out at most
one live ``AudioCapture`` at a time, and the capture must be released as soon
as its recording ends.
"""

import logging
from typing import List, Optional

from .errors import MicrophoneUnavailable, SectionStateError

logger = logging.getLogger(__name__)


class AudioCapture:
    """One acquisition of the capture device"""

    def __init__(self, device: "CaptureDevice"):
        self._device = device
        self._chunks: List[bytes] = []
        self.recording = False
        self.released = False

    def start(self):
        if self.released:
            raise MicrophoneUnavailable("Capture already released")
        self._chunks = []
        self.recording = True

    def write(self, chunk: bytes):
        if not self.recording:
            raise SectionStateError("Not recording")
        self._chunks.append(chunk)

    def stop(self) -> bytes:
        """Stop the stream and return everything recorded"""
        self.recording = False
        return b"".join(self._chunks)

    def release(self):
        if self.released:
            return
        self.recording = False
        self.released = True
        self._device._on_release(self)


class CaptureDevice:
    """Exclusive handle on a candidate's microphone"""

    def __init__(self, mime_type: str = "audio/webm"):
        self.mime_type = mime_type
        self.available = True
        self._active: Optional[AudioCapture] = None

    @property
    def in_use(self) -> bool:
        return self._active is not None

    def deny(self):
        """Browser reported the microphone as denied or missing"""
        self.available = False

    def allow(self):
        self.available = True

    def open(self) -> AudioCapture:
        """Acquire the device; raises MicrophoneUnavailable when denied or busy"""
        if not self.available:
            raise MicrophoneUnavailable("Could not access microphone. Please check permissions and try again.")
        if self._active is not None:
            raise MicrophoneUnavailable("Microphone is already in use")
        self._active = AudioCapture(self)
        logger.info("🎙️ Capture device acquired")
        return self._active

    def _on_release(self, capture: AudioCapture):
        if self._active is capture:
            self._active = None
            logger.info("🎙️ Capture device released")
