# tests/test_scoring.py
import pytest

from aptis_practice.core.schemas import TestType
from aptis_practice.core.scoring import SectionResult, feedback_for, score, score_section

EXPECTED = ["went", "on", "look after", "since"]


def test_partial_answers():
    assert score(EXPECTED, ["went", None, "look up", "since"]) == (2, 4)


def test_all_correct():
    assert score(EXPECTED, list(EXPECTED)) == (4, 4)


def test_empty_section():
    assert score([], []) == (0, 0)


def test_unanswered_never_matches():
    assert score(["None"], [None]) == (0, 1)


def test_exact_match_only():
    assert score(["Went", "on"], ["went", "on "]) == (0, 2)


def test_shorter_answer_set():
    assert score(EXPECTED, ["went"]) == (1, 4)


def test_pure_function():
    actual = ["went", None, "look after", None]
    snapshot = list(actual)

    assert score(EXPECTED, actual) == score(EXPECTED, actual)
    assert actual == snapshot


@pytest.mark.parametrize("test_type", [TestType.WRITING, TestType.SPEAKING])
def test_subjective_sections_get_full_credit(test_type):
    result = score_section(test_type, [], [None, "some text", None])

    assert (result.score, result.total) == (3, 3)
    assert result.graded is False
    assert result.percentage == 100


def test_objective_section_result():
    result = score_section(TestType.READING, EXPECTED, ["went", None, None, None])

    assert result == SectionResult(score=1, total=4, test_type=TestType.READING)
    assert result.percentage == 25


@pytest.mark.parametrize("score_value,total,percentage", [(1, 25, 4), (1, 8, 13), (1, 3, 33), (2, 3, 67), (0, 0, 0)])
def test_percentage_rounds_half_up(score_value, total, percentage):
    assert SectionResult(score_value, total, TestType.GRAMMAR_VOCABULARY).percentage == percentage


@pytest.mark.parametrize("score_value,message_start", [
    (20, "Excellent work!"),
    (15, "Good job!"),
    (10, "You've made a good start"),
    (9, "This seems to be a challenging area."),
])
def test_feedback_bands(score_value, message_start):
    result = SectionResult(score_value, 25, TestType.GRAMMAR_VOCABULARY)
    assert feedback_for(result).startswith(message_start)


def test_result_dict():
    data = SectionResult(1, 25, TestType.GRAMMAR_VOCABULARY).to_dict()

    assert data["score"] == 1
    assert data["total"] == 25
    assert data["testType"] == "GrammarVocabulary"
    assert data["title"] == "Grammar & Vocabulary"
    assert data["percentage"] == 4
    assert data["graded"] is True
