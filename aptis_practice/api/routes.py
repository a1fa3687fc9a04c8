# aptis_practice/api/routes.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from ..core.config import config
from ..core.errors import ContentError, InvalidTestType
from ..core.utils import DateTimeUtils
from ..services.generation_service import GenerationService, get_generation_service
from ..services.session_service import PracticeSession, SessionService

logger = logging.getLogger(__name__)

router = APIRouter()

# ==================== Request models ====================

class StartSectionRequest(BaseModel):
    testType: str

class AnswerRequest(BaseModel):
    index: int
    value: Optional[str] = None

class SpeakingStartRequest(BaseModel):
    microphone: Optional[str] = None

class MicrophoneErrorRequest(BaseModel):
    message: str = "Could not access microphone. Please check permissions and try again."

# ==================== Dependencies ====================

def get_session_service(request: Request) -> SessionService:
    return request.app.state.session_service

def get_session(session_id: str, service: SessionService = Depends(get_session_service)) -> PracticeSession:
    return service.get_session(session_id)

# ==================== Generation contract ====================

@router.post("/generate")
async def generate(request: Request, service: GenerationService = Depends(get_generation_service)):
    """Generate section content: 200 with the content, 400 for a bad type, 500 on failure"""
    try:
        body = await request.json()
    except ValueError:
        body = None

    test_type = body.get("testType") if isinstance(body, dict) else None
    if not isinstance(test_type, str):
        return JSONResponse(status_code=400, content={"error": "testType is required and must be a string."})

    try:
        content = await service.generate(test_type)
    except InvalidTestType as e:
        logger.warning(f"Rejected generation request: {e}")
        return JSONResponse(status_code=400, content={"error": str(e)})
    except ContentError as e:
        logger.error(f"❌ Generation failed for {test_type}: {e.detail}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate test content.", "details": e.detail}
        )

    return content.to_wire()

# ==================== Sessions ====================

@router.post("/api/sessions")
async def create_session(service: SessionService = Depends(get_session_service)):
    session = service.create_session()
    return session.snapshot()

@router.get("/api/sessions/{session_id}")
async def get_session_view(session: PracticeSession = Depends(get_session)):
    return session.snapshot()

@router.post("/api/sessions/{session_id}/sections")
async def start_section(body: StartSectionRequest, session: PracticeSession = Depends(get_session)):
    """Start (or restart) a section; returns once its content is loaded or has failed"""
    await session.navigation.start_section(body.testType)
    return session.snapshot()

@router.post("/api/sessions/{session_id}/retry")
async def retry_section(session: PracticeSession = Depends(get_session)):
    await session.navigation.retry()
    return session.snapshot()

@router.post("/api/sessions/{session_id}/answer")
async def record_answer(body: AnswerRequest, session: PracticeSession = Depends(get_session)):
    machine = session.navigation.require_section()
    try:
        machine.record_answer(body.index, body.value)
    except IndexError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    return session.snapshot()

@router.post("/api/sessions/{session_id}/next")
async def next_item(session: PracticeSession = Depends(get_session)):
    session.navigation.require_section().next()
    return session.snapshot()

@router.post("/api/sessions/{session_id}/previous")
async def previous_item(session: PracticeSession = Depends(get_session)):
    session.navigation.require_section().previous()
    return session.snapshot()

@router.post("/api/sessions/{session_id}/submit")
async def submit_section(session: PracticeSession = Depends(get_session)):
    session.navigation.require_section().submit()
    return session.snapshot()

@router.post("/api/sessions/{session_id}/quit")
async def quit_section(session: PracticeSession = Depends(get_session)):
    session.navigation.quit()
    return session.snapshot()

@router.post("/api/sessions/{session_id}/results/dismiss")
async def dismiss_results(session: PracticeSession = Depends(get_session)):
    session.navigation.back_to_dashboard()
    return session.snapshot()

# ==================== Speaking ====================

@router.post("/api/sessions/{session_id}/speaking/start")
async def start_recording(body: Optional[SpeakingStartRequest] = None,
                          session: PracticeSession = Depends(get_session),
                          service: SessionService = Depends(get_session_service)):
    """Start the preparation countdown for the current speaking task"""
    service.start_recording(session, body.microphone if body else None)
    return session.snapshot()

@router.post("/api/sessions/{session_id}/speaking/audio")
async def upload_audio(request: Request,
                       session: PracticeSession = Depends(get_session),
                       service: SessionService = Depends(get_session_service)):
    """Raw audio chunk from the browser recorder"""
    service.add_audio(session, await request.body())
    return {"status": "ok"}

@router.post("/api/sessions/{session_id}/speaking/error")
async def microphone_error(body: MicrophoneErrorRequest,
                           session: PracticeSession = Depends(get_session),
                           service: SessionService = Depends(get_session_service)):
    """Browser lost the microphone mid-task"""
    service.report_microphone_failure(session, body.message)
    return session.snapshot()

@router.get("/api/sessions/{session_id}/speaking/recordings/{index}")
async def get_recording(index: int, session: PracticeSession = Depends(get_session)):
    machine = session.navigation.require_section()
    if not 0 <= index < machine.item_count or machine.recording(index) is None:
        return JSONResponse(status_code=404, content={"error": "Recording not found"})
    return Response(content=machine.recording(index), media_type=session.capture_device.mime_type)

# ==================== Listening ====================

@router.get("/api/sessions/{session_id}/listening/audio")
async def listening_audio(session: PracticeSession = Depends(get_session),
                          service: SessionService = Depends(get_session_service)):
    """Transcript audio; refused once the play limit is reached"""
    audio = await service.listening_audio(session)
    return Response(content=audio, media_type="audio/mpeg")

# ==================== Maintenance ====================

@router.delete("/api/cleanup")
async def cleanup_sessions(service: SessionService = Depends(get_session_service)):
    removed = service.cleanup_expired()
    return {
        "removed": removed,
        "active_sessions": len(service.sessions),
        "timestamp": DateTimeUtils.get_current_timestamp()
    }

@router.get("/api/config")
async def public_config():
    """Section timings shown on the dashboard"""
    return {
        "durations": config.section_durations(),
        "maxListeningPlays": config.MAX_LISTENING_PLAYS
    }
