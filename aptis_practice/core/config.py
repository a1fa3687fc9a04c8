# aptis_practice/core/config.py
import logging
import os
from typing import Dict, Any
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

class Config:
    """Centralized configuration management"""

    # ==================== API Configuration ====================
    API_TITLE = "Aptis Practice API"
    API_DESCRIPTION = "Timed Aptis-style practice sections with AI-generated content"
    API_VERSION = "1.0.0"

    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "8000"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")

    # ==================== AI Service Configuration ====================
    # Groq settings
    GROQ_API_KEY = os.getenv("GROQ_API_KEY", "")
    GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    GROQ_TIMEOUT = int(os.getenv("GROQ_TIMEOUT", "60"))
    GROQ_TEMPERATURE = float(os.getenv("GROQ_TEMPERATURE", "0.8"))
    GROQ_MAX_TOKENS = int(os.getenv("GROQ_MAX_TOKENS", "8000"))

    # Proficiency band baked into every prompt, not configurable at runtime
    PROFICIENCY_BAND = "B1/B2"

    # ==================== Generation Client Configuration ====================
    # Empty URL means the client talks to this process in-memory
    GENERATION_API_URL = os.getenv("GENERATION_API_URL", "")
    GENERATION_CLIENT_TIMEOUT = float(os.getenv("GENERATION_CLIENT_TIMEOUT", "90"))

    # ==================== Section Configuration ====================
    # Time limits (seconds)
    GRAMMAR_VOCABULARY_DURATION = int(os.getenv("GRAMMAR_VOCABULARY_DURATION", str(12 * 60)))
    READING_DURATION = int(os.getenv("READING_DURATION", str(35 * 60)))
    WRITING_DURATION = int(os.getenv("WRITING_DURATION", str(50 * 60)))
    LISTENING_DURATION = int(os.getenv("LISTENING_DURATION", str(40 * 60)))

    MAX_LISTENING_PLAYS = int(os.getenv("MAX_LISTENING_PLAYS", "2"))

    # ==================== Session Configuration ====================
    SESSION_EXPIRATION_SECONDS = int(os.getenv("SESSION_EXPIRATION_SECONDS", "7200"))  # 2 hours

    # ==================== Audio Configuration ====================
    TTS_VOICE = os.getenv("TTS_VOICE", "en-US-JennyNeural")
    TTS_RATE = os.getenv("TTS_RATE", "-5%")

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def section_durations(self) -> Dict[str, int]:
        """Section clock per test type; Speaking only has per-task clocks"""
        return {
            "GrammarVocabulary": self.GRAMMAR_VOCABULARY_DURATION,
            "Reading": self.READING_DURATION,
            "Writing": self.WRITING_DURATION,
            "Listening": self.LISTENING_DURATION,
        }

    # ==================== Validation ====================
    def validate(self) -> Dict[str, Any]:
        """Validate configuration and return status"""
        issues = []

        if not self.GROQ_API_KEY:
            issues.append("GROQ_API_KEY is required")

        for name, seconds in self.section_durations().items():
            if seconds < 1:
                issues.append(f"{name} duration must be at least 1 second")

        if self.MAX_LISTENING_PLAYS < 1:
            issues.append("MAX_LISTENING_PLAYS must be at least 1")

        if self.SESSION_EXPIRATION_SECONDS < 60:
            issues.append("SESSION_EXPIRATION_SECONDS must be at least 60")

        return {
            "valid": len(issues) == 0,
            "issues": issues,
            "config_loaded": True
        }

# Global configuration instance
config = Config()

# Validate on import
validation_result = config.validate()
if not validation_result["valid"]:
    logger.warning(f"Configuration issues: {validation_result['issues']}")
