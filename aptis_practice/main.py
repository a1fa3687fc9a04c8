# aptis_practice/main.py
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import config
from .core.ai_services import close_ai_service
from .core.errors import (
    ContentError, GENERATION_ERROR_MESSAGE, InvalidTestType, SectionStateError, SessionNotFound,
    SpeechSynthesisFailed
)
from .core.schemas import TestType
from .core.tts_processor import TTSProcessor
from .core.utils import DateTimeUtils
from .services.generation_client import GenerationClient
from .services.session_service import SessionService
from .api.routes import router

# Setup logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    logger.info("🚀 Aptis Practice API starting...")

    validation = config.validate()
    if not validation["valid"]:
        logger.error(f"❌ Startup failed: {validation['issues']}")
        raise RuntimeError(f"Configuration invalid: {validation['issues']}")

    logger.info("✅ Configuration validated")

    client = GenerationClient.for_app(app)
    app.state.session_service = SessionService(client, tts=TTSProcessor())
    logger.info(f"⏱️ Section durations: {config.section_durations()}")
    logger.info("✅ All systems operational")

    yield

    # Cleanup on shutdown
    logger.info("👋 Shutting down...")
    app.state.session_service.close_all()
    await client.aclose()
    close_ai_service()
    logger.info("✅ Graceful shutdown completed")

# Create FastAPI application
app = FastAPI(
    title=config.API_TITLE,
    description=config.API_DESCRIPTION,
    version=config.API_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)

# Exception handlers
@app.exception_handler(InvalidTestType)
async def invalid_test_type_handler(request: Request, exc: InvalidTestType):
    logger.warning(f"Invalid test type: {exc.test_type}")
    return JSONResponse(status_code=400, content={"error": str(exc)})

@app.exception_handler(SessionNotFound)
async def session_not_found_handler(request: Request, exc: SessionNotFound):
    return JSONResponse(status_code=404, content={"error": str(exc)})

@app.exception_handler(SectionStateError)
async def section_state_handler(request: Request, exc: SectionStateError):
    logger.warning(f"Rejected action: {exc}")
    return JSONResponse(status_code=409, content={"error": str(exc)})

@app.exception_handler(ContentError)
async def content_error_handler(request: Request, exc: ContentError):
    return JSONResponse(status_code=500, content={"error": GENERATION_ERROR_MESSAGE, "details": exc.detail})

@app.exception_handler(SpeechSynthesisFailed)
async def speech_synthesis_handler(request: Request, exc: SpeechSynthesisFailed):
    logger.error(f"❌ Listening audio failed: {exc}")
    return JSONResponse(status_code=502, content={"error": str(exc)})

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }
    )

# Health check endpoints
@app.get("/health")
async def health_check(request: Request):
    """Service health"""
    health_status = {
        "status": "healthy",
        "service": "aptis_practice_api",
        "version": config.API_VERSION,
        "timestamp": DateTimeUtils.get_current_timestamp()
    }
    session_service = getattr(request.app.state, "session_service", None)
    if session_service is not None:
        health_status.update(session_service.get_stats())
    return health_status

@app.get("/info")
async def service_info():
    """Service information"""
    return {
        "name": config.API_TITLE,
        "version": config.API_VERSION,
        "description": config.API_DESCRIPTION,
        "sections": [test_type.value for test_type in TestType],
        "model": config.GROQ_MODEL,
        "endpoints": {
            "generate": "/generate",
            "sessions": "/api/sessions",
            "health": "/health",
            "docs": "/docs"
        }
    }

if __name__ == "__main__":
    uvicorn.run(
        "aptis_practice.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=False,
        log_level="info"
    )
