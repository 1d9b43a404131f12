"""Tests for objection/heuristic.py."""

import pytest

from objection.heuristic import BASE_POINTS, COMPONENT_CAP, COMPONENTS, RULES, HeuristicRule, grade_heuristically
from objection.models import GradingSource

_FULL_MARKS = (
    "For example, research shows that this harms vulnerable communities; however critics argue otherwise. "
    "First, "
    + "the policy was adopted without any public consultation at all. " * 8
)


def _firing_sample(rule: HeuristicRule) -> str:
    if rule.min_length is not None:
        return "x" * (rule.min_length + 1)
    return " and ".join(rule.keywords[: rule.min_hits])


@pytest.mark.parametrize("rule", RULES, ids=lambda r: f"{r.component}-{r.name}")
def test_each_rule_fires_on_its_own_signal(rule):
    assert rule.fires(_firing_sample(rule)) is True
    assert rule.fires("") is False


def test_rule_names_are_unique():
    names = [r.name for r in RULES]
    assert len(names) == len(set(names))


def test_rules_cover_every_component():
    assert {r.component for r in RULES} == set(COMPONENTS)


def test_empty_argument_scores_forty():
    result = grade_heuristically("")
    assert result.score == 40
    assert result.source is GradingSource.HEURISTIC_FALLBACK
    assert result.breakdown == {c: BASE_POINTS for c in COMPONENTS}
    assert result.verdict_summary
    assert result.feedback


def test_none_argument_does_not_raise():
    assert grade_heuristically(None).score == 40


def test_all_signals_score_one_hundred():
    assert len(_FULL_MARKS) > 500
    result = grade_heuristically(_FULL_MARKS)
    assert result.breakdown == {c: COMPONENT_CAP for c in COMPONENTS}
    assert result.score == 100


def test_reasoning_length_thresholds():
    assert grade_heuristically("x" * 300).breakdown["reasoning"] == 10
    assert grade_heuristically("x" * 301).breakdown["reasoning"] == 18
    assert grade_heuristically("x" * 501).breakdown["reasoning"] == 25


def test_evidence_single_and_multiple_hits():
    assert grade_heuristically("This example matters.").breakdown["evidence"] == 20
    assert grade_heuristically("The example and the data agree.").breakdown["evidence"] == 25


def test_repeated_evidence_keyword_counts_once():
    assert grade_heuristically("For example, and another example.").breakdown["evidence"] == 20
    assert grade_heuristically("Data, data and more data.").breakdown["evidence"] == 20


def test_impact_keywords_count_every_occurrence():
    assert grade_heuristically("The harm, the harm.").breakdown["empathy"] == 25


def test_empathy_perspective_and_impact():
    assert grade_heuristically("From my perspective this is unfair.").breakdown["empathy"] == 20
    assert grade_heuristically("The harm to vulnerable families is real.").breakdown["empathy"] == 25


def test_rhetoric_structure_and_counterargument():
    assert grade_heuristically("First, we act now.").breakdown["rhetoric"] == 18
    assert grade_heuristically("However, we wait.").breakdown["rhetoric"] == 17
    assert grade_heuristically("On the other hand, in conclusion we wait.").breakdown["rhetoric"] == 25


def test_keywords_are_case_insensitive():
    assert grade_heuristically("EVIDENCE").breakdown["evidence"] == 20


def test_keywords_need_a_word_start():
    assert grade_heuristically("metadata").breakdown["evidence"] == 10


def test_keyword_prefix_matches_inflections():
    assert grade_heuristically("Studies and statistics").breakdown["evidence"] == 25


@pytest.mark.parametrize(
    "text",
    [
        "",
        "short",
        "x" * 1000,
        _FULL_MARKS,
        _FULL_MARKS * 5,
        "example " * 50,
        "however first perspective harm harm data study",
    ],
)
def test_score_always_within_bounds(text):
    result = grade_heuristically(text)
    assert 40 <= result.score <= 100
    assert result.score == sum(result.breakdown.values())
    assert all(BASE_POINTS <= v <= COMPONENT_CAP for v in result.breakdown.values())


def test_empty_argument_feedback_is_constructive():
    result = grade_heuristically("")
    assert "No argument was submitted" in result.verdict_summary
    assert "Strengths: Taking on the case under time pressure." in result.feedback
    assert "Cite concrete examples" in result.feedback


def test_full_marks_feedback_lists_strengths():
    result = grade_heuristically(_FULL_MARKS)
    assert "Supporting evidence" in result.sections["strengths"]
    assert result.sections["growth_areas"] == "Keep practising to make this level of argument a habit"
    assert result.verdict_summary.startswith("A compelling argument")


def test_sections_mirror_detailed_layout():
    result = grade_heuristically("For example, this matters.")
    assert set(result.sections) == {"reasoning", "evidence", "empathy", "rhetoric", "strengths", "growth_areas"}
    assert result.sections["evidence"].startswith("You support your position")
    assert result.sections["reasoning"].startswith("Your reasoning needs more development")


def test_grading_is_deterministic():
    assert grade_heuristically(_FULL_MARKS) == grade_heuristically(_FULL_MARKS)
