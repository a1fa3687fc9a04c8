# aptis_practice/core/errors.py
"""
Error taxonomy shared by the generation contract and the section controllers
"""

GENERATION_ERROR_MESSAGE = "We couldn't generate your test. Please try again."


class AptisError(Exception):
    """Base class for all application errors"""


class InvalidTestType(AptisError, ValueError):
    """Requested test type is not one of the five sections (or is not generated remotely)"""

    def __init__(self, test_type):
        self.test_type = test_type
        super().__init__(f"Unknown or unsupported test type: {test_type}")


class ContentError(AptisError):
    """Content could not be produced; the user gets a retry affordance"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class SchemaViolation(ContentError):
    """Generated content does not match the schema for its test type"""


class GenerationFailed(ContentError):
    """Upstream model call failed, timed out or returned unparsable JSON"""


class MicrophoneUnavailable(AptisError):
    """Capture device denied, busy or otherwise unavailable"""


class SectionStateError(AptisError):
    """Action is not allowed in the section's current state"""


class SpeechSynthesisFailed(AptisError):
    """Listening audio could not be synthesized"""


class SessionNotFound(AptisError):
    """No live practice session with this id"""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found or expired: {session_id}")
