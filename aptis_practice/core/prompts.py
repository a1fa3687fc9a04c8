# aptis_practice/core/prompts.py
import json
from typing import Dict, Any

from .config import config
from .schemas import TestType, EXPECTED_ITEM_COUNTS

# ==================== Response schemas ====================

MCQ_ITEM_SCHEMA = {
    "type": "object",
    "properties": {
        "question": {"type": "string", "description": "The main question text."},
        "options": {"type": "array", "items": {"type": "string"}, "description": "An array of 4 string options."},
        "correctAnswer": {"type": "string", "description": "The correct option string."}
    },
    "required": ["question", "options", "correctAnswer"]
}

GRAMMAR_VOCABULARY_SCHEMA = {
    "type": "object",
    "properties": {
        "questions": {"type": "array", "items": MCQ_ITEM_SCHEMA}
    },
    "required": ["questions"]
}

READING_SCHEMA = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "description": "Should be 'long-comprehension'."},
        "title": {"type": "string", "description": "A suitable title for the passage."},
        "instructions": {"type": "string", "description": "Instructions for the user."},
        "passage": {"type": "string", "description": "The full reading passage."},
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "questionText": {"type": "string"},
                    "options": {"type": "array", "items": {"type": "string"}},
                    "correctAnswer": {"type": "string"}
                },
                "required": ["questionText", "options", "correctAnswer"]
            }
        }
    },
    "required": ["type", "title", "instructions", "passage", "questions"]
}

LISTENING_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "A suitable title for the listening task."},
        "instructions": {"type": "string", "description": "Instructions for the user."},
        "transcript": {"type": "string", "description": "The full transcript of the audio."},
        "questions": {"type": "array", "items": MCQ_ITEM_SCHEMA}
    },
    "required": ["title", "instructions", "transcript", "questions"]
}

RESPONSE_SCHEMAS: Dict[TestType, Dict[str, Any]] = {
    TestType.GRAMMAR_VOCABULARY: GRAMMAR_VOCABULARY_SCHEMA,
    TestType.READING: READING_SCHEMA,
    TestType.LISTENING: LISTENING_SCHEMA,
}


class PromptTemplates:
    """Centralized prompt template management"""

    SYSTEM_PROMPT = (
        "You write English exam practice material. Reply with a single JSON object only, "
        "matching the JSON schema given in the request. Every correctAnswer must be copied "
        "character for character from its options."
    )

    @staticmethod
    def create_generation_prompt(test_type: TestType) -> str:
        """Create the full user prompt (task + schema) for a generated section"""
        builders = {
            TestType.GRAMMAR_VOCABULARY: PromptTemplates._grammar_vocabulary_prompt,
            TestType.READING: PromptTemplates._reading_prompt,
            TestType.LISTENING: PromptTemplates._listening_prompt,
        }
        if test_type not in builders:
            raise ValueError(f"No generation prompt for {test_type.value}")

        task = builders[test_type](EXPECTED_ITEM_COUNTS[test_type])
        schema = json.dumps(RESPONSE_SCHEMAS[test_type], indent=2)
        return f"""{task}

Respond with JSON that matches this schema exactly:
{schema}"""

    @staticmethod
    def _grammar_vocabulary_prompt(question_count: int) -> str:
        """Grammar & vocabulary batch prompt"""
        return f"""Generate {question_count} mixed grammar and vocabulary multiple-choice questions suitable for a {config.PROFICIENCY_BAND} level General Aptis test.

REQUIREMENTS:
- Generate exactly {question_count} questions
- Cover a range of topics including verb tenses, prepositions, phrasal verbs, and common vocabulary
- For vocabulary, use sentence completion tasks
- Each question has exactly 4 options with only 1 correct answer
- Put the list of questions under the "questions" key"""

    @staticmethod
    def _reading_prompt(question_count: int) -> str:
        """Long reading comprehension prompt"""
        return f"""Generate a B2-level reading comprehension task for an Aptis test.

REQUIREMENTS:
- The passage should be around 350 words about a topic like technology, environment, or social trends
- After the passage, create exactly {question_count} multiple-choice questions to test understanding of the main ideas, details, and inference
- Each question has exactly 4 options with only 1 correct answer
- Set "type" to "long-comprehension\""""

    @staticmethod
    def _listening_prompt(question_count: int) -> str:
        """Listening transcript prompt"""
        return f"""Generate a {config.PROFICIENCY_BAND} level listening test task for an Aptis exam.

REQUIREMENTS:
- Provide a transcript of a short conversation (around 100-150 words) between two speakers about a daily topic like making plans, a past holiday, or a work situation
- Then create exactly {question_count} multiple-choice questions based on the transcript to test for specific information and main ideas
- Each question has exactly 4 options with only 1 correct answer
- The question text should be stored in the 'question' property"""
