"""Tests for objection/models.py dataclasses."""

from datetime import datetime, timezone

import pytest

from objection.models import (
    Argument,
    GradingResult,
    GradingSource,
    Mode,
    Phase,
    RoundRecord,
    Scenario,
    ScenarioOrigin,
    SessionState,
    clamp_score,
)


def _record(round_number: int, score: int) -> RoundRecord:
    return RoundRecord(
        round_number=round_number,
        scenario=Scenario(f"s{round_number}", "Your client...", round_number, Mode.NORMAL, ScenarioOrigin.PRESET),
        argument=Argument("text", datetime.now(timezone.utc)),
        result=GradingResult(score, "Verdict.", "Feedback.", GradingSource.AI_GRADED),
    )


@pytest.mark.parametrize("raw, expected", [(-5, 0), (0, 0), (42, 42), (100, 100), (150, 100)])
def test_clamp_score(raw, expected):
    assert clamp_score(raw) == expected


def test_mode_accepts_lesson_type_strings():
    assert Mode("rapid") is Mode.RAPID
    assert Mode("normal") is Mode.NORMAL


def test_session_state_defaults():
    state = SessionState(mode=Mode.RAPID, total_rounds=3)
    assert state.current_round == 1
    assert state.history == []
    assert state.phase is Phase.AWAITING_SCENARIO
    assert state.total_score == 0
    assert state.average_score == 0


def test_session_state_total_and_average():
    state = SessionState(mode=Mode.NORMAL, total_rounds=3)
    state.history.extend([_record(1, 80), _record(2, 60), _record(3, 100)])
    assert state.total_score == 240
    assert state.average_score == 80
    assert state.scores == [80, 60, 100]


def test_session_state_average_rounds_half_up():
    state = SessionState(mode=Mode.NORMAL, total_rounds=2)
    state.history.extend([_record(1, 80), _record(2, 81)])
    assert state.average_score == 81


def test_argument_defaults_to_manual_submission():
    arg = Argument("My case.", datetime.now(timezone.utc))
    assert arg.was_auto_submitted is False


def test_grading_result_is_immutable():
    result = GradingResult(70, "Verdict.", "Feedback.", GradingSource.HEURISTIC_FALLBACK)
    with pytest.raises(AttributeError):
        result.score = 90  # type: ignore[misc]
