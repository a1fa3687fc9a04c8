# aptis_practice/core/schemas.py
"""
Content schema per test type.

Generated content crosses the wire in camelCase (``correctAnswer``,
``questionText``...). Scalar fields are strict so a payload with the wrong
shape is rejected rather than coerced.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel, ConfigDict, Field, StrictInt, StrictStr, TypeAdapter, ValidationError, model_validator
)

from .errors import InvalidTestType, SchemaViolation

logger = logging.getLogger(__name__)

OPTIONS_PER_QUESTION = 4


class TestType(str, Enum):
    GRAMMAR_VOCABULARY = "GrammarVocabulary"
    READING = "Reading"
    WRITING = "Writing"
    SPEAKING = "Speaking"
    LISTENING = "Listening"

    __test__ = False  # not a pytest test class

    @classmethod
    def parse(cls, value: Any) -> "TestType":
        """Resolve a wire identifier, raising InvalidTestType for anything else"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.value == value:
                    return member
        raise InvalidTestType(value)

    @property
    def display_name(self) -> str:
        return _TITLES[self]

    @property
    def is_objective(self) -> bool:
        """Auto-scored against known correct answers"""
        return self in (TestType.GRAMMAR_VOCABULARY, TestType.READING, TestType.LISTENING)

    @property
    def is_generated(self) -> bool:
        """Content comes from the generation service rather than a fixed set"""
        return self in (TestType.GRAMMAR_VOCABULARY, TestType.READING, TestType.LISTENING)


_TITLES = {
    TestType.GRAMMAR_VOCABULARY: "Grammar & Vocabulary",
    TestType.READING: "Reading",
    TestType.WRITING: "Writing",
    TestType.SPEAKING: "Speaking",
    TestType.LISTENING: "Listening",
}

# Fixed item counts of the generation contract
EXPECTED_ITEM_COUNTS = {
    TestType.GRAMMAR_VOCABULARY: 25,
    TestType.READING: 5,
    TestType.LISTENING: 4,
    TestType.WRITING: 3,
    TestType.SPEAKING: 3,
}


# ==================== Content models ====================

class ContentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ChoiceQuestion(ContentModel):
    """Four options; correctAnswer must equal exactly one of them, compared verbatim"""
    options: List[StrictStr] = Field(min_length=OPTIONS_PER_QUESTION, max_length=OPTIONS_PER_QUESTION)
    correct_answer: StrictStr = Field(alias="correctAnswer")

    @model_validator(mode="after")
    def check_correct_answer(self):
        if self.options.count(self.correct_answer) != 1:
            raise ValueError("correctAnswer must match exactly one of the options")
        return self


class MultipleChoiceQuestion(ChoiceQuestion):
    prompt: StrictStr = Field(alias="question")


class ReadingQuestion(ChoiceQuestion):
    question_text: StrictStr = Field(alias="questionText")


ReadingKind = Literal["sentence-completion", "text-cohesion", "short-comprehension", "long-comprehension"]


class ReadingTask(ContentModel):
    kind: ReadingKind = Field(alias="type")
    title: StrictStr
    instructions: StrictStr
    passage: Optional[StrictStr] = None
    questions: List[ReadingQuestion]


class ListeningTask(ContentModel):
    title: StrictStr
    instructions: StrictStr
    transcript: StrictStr
    questions: List[MultipleChoiceQuestion]


class WritingTask(ContentModel):
    id: StrictInt
    instructions: StrictStr
    word_limit: Optional[StrictInt] = Field(default=None, alias="wordLimit")


class SpeakingTask(ContentModel):
    id: StrictInt
    instructions: StrictStr
    preparation_seconds: StrictInt = Field(alias="preparationSeconds", ge=0)
    recording_seconds: StrictInt = Field(alias="recordingSeconds", ge=1)
    image_prompt_url: Optional[StrictStr] = Field(default=None, alias="imagePromptUrl")


_ADAPTERS = {
    TestType.GRAMMAR_VOCABULARY: TypeAdapter(List[MultipleChoiceQuestion]),
    TestType.READING: TypeAdapter(ReadingTask),
    TestType.LISTENING: TypeAdapter(ListeningTask),
    TestType.WRITING: TypeAdapter(List[WritingTask]),
    TestType.SPEAKING: TypeAdapter(List[SpeakingTask]),
}


@dataclass(frozen=True)
class GeneratedContent:
    """Validated content for one section, tagged with its test type"""
    test_type: TestType
    payload: Union[List[MultipleChoiceQuestion], ReadingTask, ListeningTask,
                   List[WritingTask], List[SpeakingTask]]

    @property
    def items(self) -> list:
        """One entry per AnswerSet slot: questions or tasks"""
        if isinstance(self.payload, (ReadingTask, ListeningTask)):
            return list(self.payload.questions)
        return list(self.payload)

    @property
    def expected_answers(self) -> List[str]:
        if not self.test_type.is_objective:
            return []
        return [item.correct_answer for item in self.items]

    def to_wire(self) -> Any:
        """JSON body exactly as the /generate contract returns it"""
        if isinstance(self.payload, list):
            return [item.to_wire() for item in self.payload]
        return self.payload.to_wire()


def _count_issues(test_type: TestType, content: GeneratedContent) -> Optional[str]:
    expected = EXPECTED_ITEM_COUNTS[test_type]
    actual = len(content.items)
    if actual != expected:
        label = "questions" if test_type.is_objective else "tasks"
        return f"expected {expected} {label} for {test_type.value}, got {actual}"
    return None


def validate_content(test_type: Any, payload: Any) -> GeneratedContent:
    """Validate raw JSON-like data for ``test_type`` or raise SchemaViolation"""
    test_type = TestType.parse(test_type)
    try:
        parsed = _ADAPTERS[test_type].validate_python(payload)
    except ValidationError as e:
        logger.warning(f"Schema violation for {test_type.value}: {e.error_count()} errors")
        raise SchemaViolation(f"Invalid {test_type.value} content: {e}") from e

    content = GeneratedContent(test_type=test_type, payload=parsed)
    issue = _count_issues(test_type, content)
    if issue:
        logger.warning(f"Schema violation: {issue}")
        raise SchemaViolation(f"Invalid {test_type.value} content: {issue}")
    return content


def public_item(item: ContentModel) -> dict:
    """Item as shown to the candidate, without the correct answer"""
    return item.model_dump(by_alias=True, exclude_none=True, exclude={"correct_answer"})
