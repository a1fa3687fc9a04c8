# aptis_practice/core/utils.py
import re
import time
import uuid

import markdown


class TextUtils:
    """Utility functions for candidate-facing text"""

    @staticmethod
    def word_count(text: str) -> int:
        """Whitespace-separated words, as shown under the writing box"""
        if not text:
            return 0
        return len([word for word in re.split(r"\s+", text.strip()) if word])

    @staticmethod
    def to_html(text: str) -> str:
        """Render instructions or passages (line breaks and lists kept)"""
        if not text:
            return ""
        return markdown.markdown(text, extensions=["nl2br"])

    @staticmethod
    def progress_percentage(current_index: int, total: int) -> float:
        if total <= 0:
            return 0.0
        return round((current_index + 1) / total * 100, 2)


class DateTimeUtils:
    """Utility functions for date/time operations"""

    @staticmethod
    def get_current_timestamp() -> float:
        """Get current timestamp"""
        return time.time()


def generate_session_id() -> str:
    """Generate unique session ID"""
    return str(uuid.uuid4())
