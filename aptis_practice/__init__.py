# aptis_practice/__init__.py
"""
Aptis Practice - timed exam-practice sections
AI-generated grammar, reading and listening content; fixed writing and speaking tasks
"""

__version__ = "1.0.0"
__description__ = "Aptis-style practice sections with on-demand content generation"

from .core.config import config
from .main import app

__all__ = ["app", "config"]
