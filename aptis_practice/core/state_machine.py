# aptis_practice/core/state_machine.py
"""
Per-section controller.

Every input (user action, content fetch outcome, timer expiry, playback and
capture signals) arrives as an event object through ``handle_event``; timers
and the fetch code only ever post events, so all transitions live here and
can be exercised without an event loop.

    Loading -> Ready -> InProgress -> Submitting -> Completed
    Loading -> Failed -> (retry) -> Loading

Speaking adds a per-task recorder:

    Idle -> Preparing -> Recording -> Recorded      (Error on capture failure)

and Listening tracks how many times the transcript has been played.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .capture import AudioCapture
from .config import config
from .errors import GENERATION_ERROR_MESSAGE, MicrophoneUnavailable, SectionStateError
from .schemas import GeneratedContent, ListeningTask, ReadingTask, TestType, public_item
from .scoring import SectionResult, score_section
from .timer import SectionTimer
from .utils import TextUtils

logger = logging.getLogger(__name__)


class SectionState(Enum):
    LOADING = "loading"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"


class RecordingStatus(Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    RECORDING = "recording"
    RECORDED = "recorded"
    ERROR = "error"


class PlaybackStatus(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    ENDED = "ended"


# =============================================================================
# EVENTS
# =============================================================================

@dataclass(frozen=True)
class ContentLoaded:
    content: GeneratedContent

@dataclass(frozen=True)
class ContentFailed:
    detail: str

@dataclass(frozen=True)
class Retry:
    pass

@dataclass(frozen=True)
class Next:
    pass

@dataclass(frozen=True)
class Previous:
    pass

@dataclass(frozen=True)
class RecordAnswer:
    index: int
    value: Any

@dataclass(frozen=True)
class Submit:
    pass

@dataclass(frozen=True)
class TimerExpired:
    pass

@dataclass(frozen=True)
class StartPreparation:
    pass

@dataclass(frozen=True)
class PhaseExpired:
    pass

@dataclass(frozen=True)
class MicrophoneFailed:
    message: str

@dataclass(frozen=True)
class AudioChunk:
    data: bytes

@dataclass(frozen=True)
class PlayAudio:
    pass

@dataclass(frozen=True)
class PlaybackEnded:
    pass

@dataclass(frozen=True)
class PlaybackFailed:
    pass


# =============================================================================
# ANSWER SET
# =============================================================================

class AnswerSet:
    """One slot per question/task; ``None`` means unanswered"""

    def __init__(self, size: int):
        self._slots: List[Optional[Any]] = [None] * size

    def record(self, index: int, value: Any):
        if not 0 <= index < len(self._slots):
            raise IndexError(f"Answer index {index} out of range (0-{len(self._slots) - 1})")
        self._slots[index] = value

    @property
    def answered_count(self) -> int:
        return sum(1 for slot in self._slots if slot is not None)

    def to_list(self) -> List[Optional[Any]]:
        return list(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, index: int) -> Optional[Any]:
        return self._slots[index]

    def __iter__(self):
        return iter(self._slots)


# =============================================================================
# SECTION STATE MACHINE
# =============================================================================

class SectionStateMachine:
    """Navigation, answers, clocks and submission for one section instance"""

    def __init__(self, test_type: TestType, *,
                 duration: Optional[int] = None,
                 capture_factory: Optional[Callable[[], AudioCapture]] = None,
                 on_complete: Optional[Callable[[SectionResult], None]] = None,
                 max_plays: Optional[int] = None,
                 autotick: bool = True,
                 tick_interval: float = 1.0):
        self.test_type = TestType.parse(test_type)
        self.state = SectionState.LOADING
        self.content: Optional[GeneratedContent] = None
        self.answers = AnswerSet(0)
        self.current_index = 0
        self.result: Optional[SectionResult] = None
        self.error: Optional[str] = None
        self.error_detail: Optional[str] = None
        self.closed = False

        if duration is None:
            duration = config.section_durations().get(self.test_type.value)
        self.duration = duration
        self._on_complete = on_complete

        self.section_timer: Optional[SectionTimer] = None
        if self.duration:
            self.section_timer = SectionTimer(
                lambda: self.handle_event(TimerExpired()),
                tick_interval=tick_interval, autotick=autotick,
                name=f"{self.test_type.value} section"
            )

        # Speaking recorder
        self._capture_factory = capture_factory
        self._capture: Optional[AudioCapture] = None
        self.recording_status = RecordingStatus.IDLE
        self.recording_error: Optional[str] = None
        self.phase_timer = SectionTimer(
            lambda: self.handle_event(PhaseExpired()),
            tick_interval=tick_interval, autotick=autotick,
            name=f"{self.test_type.value} task phase"
        )

        # Listening playback
        self.max_plays = config.MAX_LISTENING_PLAYS if max_plays is None else max_plays
        self.playback_status = PlaybackStatus.IDLE
        self.play_count = 0

        self._handlers: Dict[type, Callable[[Any], None]] = {
            ContentLoaded: self._on_content_loaded,
            ContentFailed: self._on_content_failed,
            Retry: self._on_retry,
            Next: self._on_next,
            Previous: self._on_previous,
            RecordAnswer: self._on_record_answer,
            Submit: self._on_submit,
            TimerExpired: self._on_timer_expired,
            StartPreparation: self._on_start_preparation,
            PhaseExpired: self._on_phase_expired,
            MicrophoneFailed: self._on_microphone_failed,
            AudioChunk: self._on_audio_chunk,
            PlayAudio: self._on_play_audio,
            PlaybackEnded: self._on_playback_ended,
            PlaybackFailed: self._on_playback_failed,
        }

    # ==================== Entry point ====================

    def handle_event(self, event) -> SectionState:
        """Apply one event and return the resulting section state"""
        if self.closed:
            logger.debug(f"Ignoring {type(event).__name__} for closed {self.test_type.value} section")
            return self.state

        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported section event: {event!r}")

        handler(event)
        return self.state

    def next(self) -> SectionState:
        return self.handle_event(Next())

    def previous(self) -> SectionState:
        return self.handle_event(Previous())

    def record_answer(self, index: int, value: Any) -> SectionState:
        return self.handle_event(RecordAnswer(index, value))

    def submit(self) -> SectionState:
        return self.handle_event(Submit())

    def close(self):
        """Tear down: stop every clock and release the capture device"""
        if self.closed:
            return
        self._stop_clocks()
        self._release_capture()
        self.closed = True
        logger.info(f"🛑 {self.test_type.value} section closed in state {self.state.value}")

    # ==================== Properties ====================

    @property
    def is_active(self) -> bool:
        return self.state in (SectionState.READY, SectionState.IN_PROGRESS)

    @property
    def items(self) -> list:
        return self.content.items if self.content else []

    @property
    def item_count(self) -> int:
        return len(self.answers)

    @property
    def current_item(self):
        items = self.items
        if not items:
            return None
        return items[self.current_index]

    @property
    def can_advance(self) -> bool:
        """Whether Next Task / Finish is enabled"""
        if not self.is_active:
            return False
        if self.test_type is TestType.SPEAKING and self.item_count:
            return self.recording_status is RecordingStatus.RECORDED
        return True

    @property
    def plays_left(self) -> int:
        return max(0, self.max_plays - self.play_count)

    # ==================== Content ====================

    def _on_content_loaded(self, event: ContentLoaded):
        if self.state is not SectionState.LOADING:
            logger.warning(f"Discarding content for {self.test_type.value} section in state {self.state.value}")
            return
        if event.content.test_type is not self.test_type:
            raise ValueError(f"{event.content.test_type.value} content given to {self.test_type.value} section")

        self.content = event.content
        self.answers = AnswerSet(len(event.content.items))
        self.current_index = 0
        self.error = None
        self.error_detail = None
        self.recording_status = RecordingStatus.IDLE
        self.playback_status = PlaybackStatus.IDLE
        self.play_count = 0
        self.state = SectionState.READY

        if self.section_timer:
            self.section_timer.start(self.duration)

        logger.info(f"✅ {self.test_type.value} section ready with {self.item_count} items")

    def _on_content_failed(self, event: ContentFailed):
        if self.state is not SectionState.LOADING:
            return
        self.state = SectionState.FAILED
        self.error = GENERATION_ERROR_MESSAGE
        self.error_detail = event.detail
        logger.warning(f"⚠️ {self.test_type.value} content failed: {event.detail}")

    def _on_retry(self, event: Retry):
        if self.state is not SectionState.FAILED:
            raise SectionStateError("Retry is only possible after a failed load")
        self.state = SectionState.LOADING
        self.error = None
        self.error_detail = None

    # ==================== Navigation and answers ====================

    def _require_active(self, action: str):
        if not self.is_active:
            raise SectionStateError(f"Cannot {action} while section is {self.state.value}")

    def _on_next(self, event: Next):
        self._require_active("move to the next item")
        if not self.can_advance:
            raise SectionStateError("Finish recording the current task first")

        if self.current_index < self.item_count - 1:
            self.current_index += 1
            if self.test_type is TestType.SPEAKING:
                self.recording_status = RecordingStatus.IDLE
                self.recording_error = None
        self.state = SectionState.IN_PROGRESS

    def _on_previous(self, event: Previous):
        self._require_active("move to the previous item")
        # speaking tasks are answered strictly in order
        if self.test_type is not TestType.SPEAKING and self.current_index > 0:
            self.current_index -= 1
        self.state = SectionState.IN_PROGRESS

    def _on_record_answer(self, event: RecordAnswer):
        self._require_active("answer")
        if self.test_type is TestType.SPEAKING:
            raise SectionStateError("Speaking responses are captured from the microphone")
        self.answers.record(event.index, event.value)
        self.state = SectionState.IN_PROGRESS

    # ==================== Submission ====================

    def _on_submit(self, event: Submit):
        self._require_active("submit")
        if not self.can_advance:
            raise SectionStateError("Finish recording the current task first")
        self._complete("submitted")

    def _on_timer_expired(self, event: TimerExpired):
        if not self.is_active:
            return
        self._complete("time up")

    def _complete(self, reason: str):
        self.state = SectionState.SUBMITTING
        self._stop_clocks()
        self._release_capture()

        expected = self.content.expected_answers if self.content else []
        self.result = score_section(self.test_type, expected, self.answers.to_list())
        self.state = SectionState.COMPLETED
        logger.info(f"🏁 {self.test_type.value} section completed ({reason}): "
                    f"{self.result.score}/{self.result.total}")

        if self._on_complete:
            self._on_complete(self.result)

    # ==================== Speaking recorder ====================

    def _on_start_preparation(self, event: StartPreparation):
        self._require_active("start recording")
        if self.test_type is not TestType.SPEAKING:
            raise SectionStateError("Recording is only available in the Speaking section")
        if self.recording_status not in (RecordingStatus.IDLE, RecordingStatus.RECORDED, RecordingStatus.ERROR):
            raise SectionStateError(f"Already {self.recording_status.value}")
        task = self.current_item
        if task is None:
            raise SectionStateError("No speaking task to record")

        try:
            if self._capture_factory is None:
                raise MicrophoneUnavailable("No capture device available")
            self._capture = self._capture_factory()
        except MicrophoneUnavailable as e:
            logger.warning(f"🎙️ Microphone unavailable: {e}")
            self.recording_status = RecordingStatus.ERROR
            self.recording_error = str(e)
            return

        self.recording_error = None
        self.recording_status = RecordingStatus.PREPARING
        self.state = SectionState.IN_PROGRESS
        self.phase_timer.start(task.preparation_seconds)

    def _on_phase_expired(self, event: PhaseExpired):
        if self.recording_status is RecordingStatus.PREPARING:
            self._capture.start()
            self.recording_status = RecordingStatus.RECORDING
            self.phase_timer.start(self.current_item.recording_seconds)
        elif self.recording_status is RecordingStatus.RECORDING:
            audio = self._capture.stop()
            self._release_capture()
            self.answers.record(self.current_index, audio)
            self.recording_status = RecordingStatus.RECORDED
            logger.info(f"🎙️ Task {self.current_index + 1} recorded ({len(audio)} bytes)")

    def _on_microphone_failed(self, event: MicrophoneFailed):
        self._require_active("record")
        self.phase_timer.cancel()
        self._release_capture()
        self.recording_status = RecordingStatus.ERROR
        self.recording_error = event.message

    def _on_audio_chunk(self, event: AudioChunk):
        if self.recording_status is not RecordingStatus.RECORDING or self._capture is None:
            raise SectionStateError("Audio can only be sent while recording")
        self._capture.write(event.data)

    # ==================== Listening playback ====================

    def _on_play_audio(self, event: PlayAudio):
        self._require_active("play audio")
        if self.test_type is not TestType.LISTENING:
            raise SectionStateError("Audio playback is only available in the Listening section")
        if self.playback_status is PlaybackStatus.PLAYING:
            raise SectionStateError("Audio is already playing")
        if self.play_count >= self.max_plays:
            raise SectionStateError("No plays left")
        self.playback_status = PlaybackStatus.PLAYING

    def _on_playback_ended(self, event: PlaybackEnded):
        if self.playback_status is PlaybackStatus.PLAYING:
            self.playback_status = PlaybackStatus.ENDED
            self.play_count += 1

    def _on_playback_failed(self, event: PlaybackFailed):
        if self.playback_status is PlaybackStatus.PLAYING:
            self.playback_status = PlaybackStatus.IDLE

    # ==================== Helpers ====================

    def _stop_clocks(self):
        if self.section_timer:
            self.section_timer.cancel()
        self.phase_timer.cancel()

    def _release_capture(self):
        capture, self._capture = self._capture, None
        if capture is not None:
            capture.stop()
            capture.release()

    def recording(self, index: int) -> Optional[bytes]:
        """Recorded audio for a speaking task"""
        if self.test_type is not TestType.SPEAKING:
            return None
        return self.answers[index]

    def snapshot(self) -> Dict[str, Any]:
        """JSON view of the section; never exposes correct answers or the transcript"""
        data: Dict[str, Any] = {
            "testType": self.test_type.value,
            "title": self.test_type.display_name,
            "state": self.state.value,
            "currentIndex": self.current_index,
            "itemCount": self.item_count,
            "progress": TextUtils.progress_percentage(self.current_index, self.item_count),
            "canAdvance": self.can_advance,
            "isLast": self.current_index >= self.item_count - 1,
        }

        if self.state is SectionState.FAILED:
            data["error"] = self.error
            data["details"] = self.error_detail

        if self.section_timer:
            data["timer"] = {
                "remainingSeconds": self.section_timer.remaining_seconds,
                "display": self.section_timer.display,
                "running": self.section_timer.running
            }

        item = self.current_item
        if item is not None:
            data["item"] = public_item(item)
            if hasattr(item, "instructions"):
                data["item"]["instructionsHtml"] = TextUtils.to_html(item.instructions)

        if self.test_type is TestType.SPEAKING:
            data["answers"] = [answer is not None for answer in self.answers]
            data["speaking"] = {
                "status": self.recording_status.value,
                "remainingSeconds": self.phase_timer.remaining_seconds,
                "error": self.recording_error
            }
        else:
            data["answers"] = self.answers.to_list()

        if self.content is not None:
            payload = self.content.payload
            if isinstance(payload, ReadingTask):
                data["task"] = {
                    "title": payload.title,
                    "instructions": payload.instructions,
                    "passage": payload.passage,
                    "passageHtml": TextUtils.to_html(payload.passage or "")
                }
            elif isinstance(payload, ListeningTask):
                data["task"] = {"title": payload.title, "instructions": payload.instructions}

        if self.test_type is TestType.LISTENING:
            data["listening"] = {
                "status": self.playback_status.value,
                "playsLeft": self.plays_left
            }

        if self.test_type is TestType.WRITING and item is not None:
            response = self.answers[self.current_index] or ""
            data["writing"] = {
                "wordCount": TextUtils.word_count(response),
                "wordLimit": item.word_limit
            }

        if self.result is not None:
            data["result"] = self.result.to_dict()

        return data
