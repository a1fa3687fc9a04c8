# aptis_practice/core/__init__.py
"""
Core module: configuration, content schema, generation backend, section timing,
scoring and navigation
"""

from .config import config
from .schemas import TestType, GeneratedContent, validate_content
from .timer import SectionTimer
from .scoring import SectionResult, score, score_section
from .state_machine import SectionStateMachine, SectionState, RecordingStatus
from .navigation import NavigationController, ViewKind

__all__ = [
    'config',
    'TestType',
    'GeneratedContent',
    'validate_content',
    'SectionTimer',
    'SectionResult',
    'score',
    'score_section',
    'SectionStateMachine',
    'SectionState',
    'RecordingStatus',
    'NavigationController',
    'ViewKind'
]
