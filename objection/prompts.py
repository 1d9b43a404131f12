"""Prompt construction for case generation and judging, plus the softened-retry rewrite."""

import re

from config.config_loader import ModeConfig, PromptsConfig

NO_ARGUMENT_PLACEHOLDER = "[NO ARGUMENT SUBMITTED]"

_DIFFICULTY = {
    1: "moderately challenging issue",
    2: "complex issue with multiple perspectives",
    3: "highly difficult systemic or moral dilemma",
}

_SOFT_PREAMBLE = "This is a friendly writing exercise for a debate class.\n\n"

# Applied in order. Role-play framing goes first, then strict formatting demands.
_SOFTENING_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^[ \t]*You are [^\n]*\n?", re.IGNORECASE | re.MULTILINE), ""),
    (re.compile(r"\bJudge Gemini\b", re.IGNORECASE), "the reviewer"),
    (re.compile(r"\bpresiding over\b", re.IGNORECASE), "reviewing"),
    (re.compile(r"\bin this EXACT format\b", re.IGNORECASE), "using roughly this layout"),
    (re.compile(r"\bformat EXACTLY as\b", re.IGNORECASE), "if possible, use this layout"),
    (re.compile(r"\bEXACTLY\b"), "ideally"),
    (re.compile(r"\bCRITICAL:\s*"), ""),
    (re.compile(r"\bMUST\b"), "should"),
    (re.compile(r"\bONLY\b"), "just"),
    (re.compile(r"\n{3,}"), "\n\n"),
)


def build_case_prompt(
    prompts: PromptsConfig,
    mode: ModeConfig,
    round_number: int,
    total_rounds: int,
) -> str:
    """Fill the case-generation template for one round."""
    mode_rule = prompts.case_rapid_rule if mode.name == "rapid" else ""
    return prompts.case.format(
        round=round_number,
        total_rounds=total_rounds,
        mode_label=mode.label,
        minutes=max(1, mode.duration_sec // 60),
        difficulty=_DIFFICULTY.get(round_number, _DIFFICULTY[3]),
        mode_rule=mode_rule,
    ).strip()


def build_judge_prompt(prompts: PromptsConfig, scenario_text: str, argument_text: str) -> str:
    """Fill the judging template. An empty argument is sent as an explicit placeholder."""
    argument = argument_text.strip() or NO_ARGUMENT_PLACEHOLDER
    return prompts.judge.format(scenario=scenario_text.strip(), argument=argument).strip()


def soften_prompt(prompt: str) -> str:
    """Rewrite a prompt without role-play framing or hard formatting demands.

    Used once, after a model returned nothing or was blocked. Markers such as
    ``SCORE:`` survive so the answer stays parseable.
    """
    softened = prompt
    for pattern, replacement in _SOFTENING_RULES:
        softened = pattern.sub(replacement, softened)
    return _SOFT_PREAMBLE + softened.strip()
