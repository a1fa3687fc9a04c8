# aptis_practice/core/scoring.py
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

from .schemas import TestType


@dataclass(frozen=True)
class SectionResult:
    """Outcome of one completed section"""
    score: int
    total: int
    test_type: TestType

    @property
    def percentage(self) -> int:
        """Whole percent, rounded half up; an empty section is 0%"""
        if self.total <= 0:
            return 0
        return int(math.floor(self.score * 100 / self.total + 0.5))

    @property
    def graded(self) -> bool:
        return self.test_type.is_objective

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "total": self.total,
            "testType": self.test_type.value,
            "title": self.test_type.display_name,
            "percentage": self.percentage,
            "graded": self.graded,
            "feedback": feedback_for(self)
        }


def score(expected: Sequence[str], actual: Sequence[Optional[Any]]) -> Tuple[int, int]:
    """Count exact string matches position by position; unanswered slots never match"""
    total = len(expected)
    correct = 0
    for index, expected_answer in enumerate(expected):
        if index >= len(actual):
            break
        answer = actual[index]
        if answer is not None and answer == expected_answer:
            correct += 1
    return correct, total


def score_section(test_type: TestType, expected: Sequence[str],
                  actual: Sequence[Optional[Any]]) -> SectionResult:
    """Objective sections are marked; subjective ones get full participation credit"""
    if test_type.is_objective:
        correct, total = score(expected, actual)
    else:
        total = len(actual)
        correct = total
    return SectionResult(score=correct, total=total, test_type=test_type)


def feedback_for(result: SectionResult) -> str:
    """Results-page message for a section"""
    if not result.graded:
        return "Your responses have been saved. Well done for completing the section!"

    percentage = result.percentage
    if percentage >= 80:
        return "Excellent work! You have a strong command of this area."
    if percentage >= 60:
        return "Good job! You're on the right track. Keep practicing to improve further."
    if percentage >= 40:
        return "You've made a good start, but there's room for improvement. Reviewing the basics will help."
    return "This seems to be a challenging area. Consistent practice will make a big difference."
