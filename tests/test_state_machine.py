# tests/test_state_machine.py
import pytest

from aptis_practice.core.errors import GENERATION_ERROR_MESSAGE, SectionStateError
from aptis_practice.core.schemas import GeneratedContent, TestType
from aptis_practice.core.state_machine import (
    AnswerSet, ContentFailed, ContentLoaded, PlayAudio, PlaybackEnded, PlaybackFailed, PlaybackStatus,
    Retry, SectionState, SectionStateMachine, StartPreparation, TimerExpired
)

from conftest import make_content


def machine_for(test_type: TestType, **kwargs) -> SectionStateMachine:
    completed = []
    machine = SectionStateMachine(test_type, autotick=False, on_complete=completed.append, **kwargs)
    machine.completed = completed
    return machine


def loaded(test_type: TestType, **kwargs) -> SectionStateMachine:
    machine = machine_for(test_type, **kwargs)
    machine.handle_event(ContentLoaded(make_content(test_type)))
    return machine


class TestAnswerSet:
    def test_starts_unanswered(self):
        answers = AnswerSet(3)
        assert answers.to_list() == [None, None, None]
        assert answers.answered_count == 0

    def test_overwrite(self):
        answers = AnswerSet(2)
        answers.record(1, "a")
        answers.record(1, "b")
        assert answers.to_list() == [None, "b"]

    def test_out_of_range(self):
        with pytest.raises(IndexError):
            AnswerSet(2).record(2, "a")
        with pytest.raises(IndexError):
            AnswerSet(2).record(-1, "a")


class TestLifecycle:
    def test_starts_loading(self):
        machine = machine_for(TestType.READING)
        assert machine.state is SectionState.LOADING
        assert machine.section_timer.running is False

    def test_content_loaded(self):
        machine = loaded(TestType.READING)

        assert machine.state is SectionState.READY
        assert machine.item_count == 5
        assert machine.section_timer.running is True
        assert machine.section_timer.remaining_seconds == 35 * 60

    def test_scenario_answer_first_question_only(self):
        machine = loaded(TestType.GRAMMAR_VOCABULARY)
        assert machine.item_count == 25

        machine.record_answer(0, machine.items[0].correct_answer)
        state = machine.submit()

        assert state is SectionState.COMPLETED
        assert (machine.result.score, machine.result.total) == (1, 25)
        assert machine.completed == [machine.result]
        assert machine.section_timer.running is False

    def test_failure_and_retry(self):
        machine = machine_for(TestType.LISTENING)

        machine.handle_event(ContentFailed("Model call failed"))
        assert machine.state is SectionState.FAILED
        assert machine.error == GENERATION_ERROR_MESSAGE
        assert machine.snapshot()["details"] == "Model call failed"

        machine.handle_event(Retry())
        assert machine.state is SectionState.LOADING
        machine.handle_event(ContentLoaded(make_content(TestType.LISTENING)))
        assert machine.state is SectionState.READY

    def test_retry_only_after_failure(self):
        machine = loaded(TestType.READING)
        with pytest.raises(SectionStateError):
            machine.handle_event(Retry())

    def test_late_content_ignored_after_ready(self):
        machine = loaded(TestType.READING)
        machine.record_answer(0, "right 0")

        machine.handle_event(ContentLoaded(make_content(TestType.READING)))
        machine.handle_event(ContentFailed("late"))

        assert machine.state is SectionState.IN_PROGRESS
        assert machine.answers[0] == "right 0"

    def test_no_input_while_loading(self):
        machine = machine_for(TestType.READING)
        with pytest.raises(SectionStateError):
            machine.next()
        with pytest.raises(SectionStateError):
            machine.record_answer(0, "x")
        with pytest.raises(SectionStateError):
            machine.submit()

    def test_timer_expiry_submits(self):
        machine = loaded(TestType.GRAMMAR_VOCABULARY, duration=3)
        machine.record_answer(1, machine.items[1].correct_answer)

        for _ in range(3):
            machine.section_timer.tick()

        assert machine.state is SectionState.COMPLETED
        assert (machine.result.score, machine.result.total) == (1, 25)
        assert len(machine.completed) == 1

    def test_expiry_after_submit_is_ignored(self):
        machine = loaded(TestType.READING)
        machine.submit()

        machine.handle_event(TimerExpired())

        assert len(machine.completed) == 1

    def test_no_actions_after_completion(self):
        machine = loaded(TestType.READING)
        machine.submit()
        with pytest.raises(SectionStateError):
            machine.submit()

    def test_empty_content(self):
        machine = machine_for(TestType.GRAMMAR_VOCABULARY)
        machine.handle_event(ContentLoaded(GeneratedContent(TestType.GRAMMAR_VOCABULARY, [])))

        machine.next()
        machine.previous()
        machine.submit()

        assert (machine.result.score, machine.result.total) == (0, 0)
        assert machine.result.percentage == 0

    def test_close_stops_clock_and_ignores_events(self):
        machine = loaded(TestType.READING)

        machine.close()
        machine.close()
        machine.handle_event(TimerExpired())

        assert machine.closed is True
        assert machine.section_timer.running is False
        assert machine.completed == []

    def test_content_for_other_type_rejected(self):
        machine = machine_for(TestType.READING)
        with pytest.raises(ValueError):
            machine.handle_event(ContentLoaded(make_content(TestType.LISTENING)))


class TestNavigation:
    def test_bounds(self):
        machine = loaded(TestType.READING)

        machine.previous()
        assert machine.current_index == 0

        for _ in range(10):
            machine.next()
        assert machine.current_index == 4

        machine.previous()
        assert machine.current_index == 3
        assert machine.state is SectionState.IN_PROGRESS

    def test_answers_stay_mutable(self):
        machine = loaded(TestType.READING)
        machine.record_answer(2, "wrong 2a")
        machine.record_answer(2, "right 2")
        machine.submit()
        assert machine.result.score == 1

    def test_answer_index_out_of_range(self):
        machine = loaded(TestType.LISTENING)
        with pytest.raises(IndexError):
            machine.record_answer(4, "x")


class TestWriting:
    def test_participation_credit(self):
        machine = loaded(TestType.WRITING)
        machine.record_answer(0, "Full Name: Ana")

        machine.submit()

        assert (machine.result.score, machine.result.total) == (3, 3)

    def test_word_count_in_snapshot(self):
        machine = loaded(TestType.WRITING)
        machine.record_answer(0, "I love  playing\ntennis")

        snapshot = machine.snapshot()

        assert snapshot["writing"]["wordCount"] == 4
        assert snapshot["timer"]["display"] == "50:00"


class TestListening:
    def test_two_plays_max(self):
        machine = loaded(TestType.LISTENING)

        for _ in range(2):
            machine.handle_event(PlayAudio())
            machine.handle_event(PlaybackEnded())

        assert machine.plays_left == 0
        with pytest.raises(SectionStateError):
            machine.handle_event(PlayAudio())

    def test_failed_playback_not_counted(self):
        machine = loaded(TestType.LISTENING)

        machine.handle_event(PlayAudio())
        machine.handle_event(PlaybackFailed())

        assert machine.playback_status is PlaybackStatus.IDLE
        assert machine.plays_left == 2

    def test_no_overlapping_playback(self):
        machine = loaded(TestType.LISTENING)
        machine.handle_event(PlayAudio())
        with pytest.raises(SectionStateError):
            machine.handle_event(PlayAudio())

    def test_playback_only_in_listening(self):
        machine = loaded(TestType.READING)
        with pytest.raises(SectionStateError):
            machine.handle_event(PlayAudio())

    def test_snapshot_hides_answers_and_transcript(self):
        machine = loaded(TestType.LISTENING)

        snapshot = machine.snapshot()

        assert "correctAnswer" not in snapshot["item"]
        assert "transcript" not in snapshot["task"]
        assert "right 0" not in str(snapshot["answers"])
        assert snapshot["listening"] == {"status": "idle", "playsLeft": 2}


def test_recording_only_in_speaking():
    machine = loaded(TestType.READING)
    with pytest.raises(SectionStateError):
        machine.handle_event(StartPreparation())


def test_snapshot_progress():
    machine = loaded(TestType.READING)
    machine.next()

    snapshot = machine.snapshot()

    assert snapshot["currentIndex"] == 1
    assert snapshot["progress"] == 40.0
    assert snapshot["task"]["passageHtml"].startswith("<p>")
