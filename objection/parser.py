"""Tolerant parser for free-text judge output in the SCORE / VERDICT / FEEDBACK layout."""

import logging
import re

from objection.models import GradingResult, GradingSource, clamp_score

logger = logging.getLogger(__name__)

NO_FEEDBACK_TEXT = "The judge did not add further feedback for this round."

# (key, heading pattern, line_anchored). Order matters: SPECIFIC FEEDBACK before FEEDBACK.
# Core markers also count mid-line when written in uppercase; detailed headings only
# count at the start of a line.
_MARKERS: tuple[tuple[str, str, bool], ...] = (
    ("score", r"SCORE", False),
    ("verdict", r"VERDICT", False),
    ("specific_feedback", r"SPECIFIC\s+FEEDBACK", True),
    ("feedback", r"FEEDBACK", False),
    ("reasoning", r"(?:LEGAL\s+)?REASONING", True),
    ("evidence", r"EVIDENCE", True),
    ("empathy", r"EMPATHY", True),
    ("rhetoric", r"RHETORIC", True),
    ("strengths", r"STRENGTHS", True),
    ("growth_areas", r"(?:GROWTH\s+AREAS|AREAS\s+FOR\s+GROWTH)", True),
)

_DETAIL_KEYS = tuple(key for key, _, anchored in _MARKERS if anchored)

_SECTION_TITLES = {
    "reasoning": "Reasoning",
    "evidence": "Evidence",
    "empathy": "Empathy",
    "rhetoric": "Rhetoric",
    "specific_feedback": "Specific feedback",
    "strengths": "Strengths",
    "growth_areas": "Areas for growth",
}


_LINE_START = r"^[ \t>#*_-]*"


def _core_prefix(heading: str) -> str:
    # Any case at the start of a line; mid-line only in the layout's uppercase
    return rf"(?:{_LINE_START}|(?<!\w)(?=(?-i:{heading})))"


def _marker_regex() -> re.Pattern[str]:
    parts = []
    for key, heading, anchored in _MARKERS:
        prefix = _LINE_START if anchored else _core_prefix(heading)
        parts.append(rf"{prefix}(?P<{key}>{heading})[ \t*_]*:[ \t*_]*")
    return re.compile("|".join(parts), re.IGNORECASE | re.MULTILINE)


_MARKER_RE = _marker_regex()
_SCORE_RE = re.compile(
    rf"{_core_prefix('SCORE')}SCORE[ \t*_]*:[^\d\n-]*(-?\d+)",
    re.IGNORECASE | re.MULTILINE,
)
_DECORATION = " \t\r\n*_#>"


class ParseFailure(Exception):
    """Raised when judge output carries nothing to grade from."""


def extract_score(raw_text: str, default_score: int = 75) -> int:
    """Return the first integer after ``SCORE:``, clamped to 0..100, or the default."""
    match = _SCORE_RE.search(raw_text)
    if match is None:
        return clamp_score(default_score)
    return clamp_score(int(match.group(1)))


def _split_sections(raw_text: str) -> dict[str, str]:
    """Map each recognized marker (first occurrence wins) to its body text."""
    matches = list(_MARKER_RE.finditer(raw_text))
    sections: dict[str, str] = {}
    for index, match in enumerate(matches):
        key = match.lastgroup
        if key is None or key in sections:
            continue
        if key == "feedback":
            # FEEDBACK runs to the end of the text, whatever follows it
            end = len(raw_text)
        else:
            end = matches[index + 1].start() if index + 1 < len(matches) else len(raw_text)
        sections[key] = raw_text[match.end():end].strip(_DECORATION)
    return sections


def _assemble_detail_feedback(details: dict[str, str]) -> str:
    lines = [f"{_SECTION_TITLES[key]}: {body}" for key, body in details.items() if body]
    return "\n".join(lines)


def format_verdict_text(result: GradingResult) -> str:
    """Render a result back into the layout the judge is asked to produce."""
    return f"SCORE: {result.score}\nVERDICT: {result.verdict_summary}\nFEEDBACK: {result.feedback}"


def parse_grading(raw_text: str, default_score: int = 75) -> GradingResult:
    """Turn judge output into a GradingResult (source AI_GRADED).

    Missing markers never fail the parse: without ``SCORE:`` the default score
    is used, and without ``VERDICT:`` the whole text becomes the verdict.

    Raises:
        ParseFailure: If the text is empty or blank.
    """
    if raw_text is None or not raw_text.strip():
        raise ParseFailure("Judge output is empty")

    text = raw_text.strip()
    score = extract_score(text, default_score)
    sections = _split_sections(text)

    verdict = sections.get("verdict", "")
    if not verdict:
        verdict = text

    details = {key: sections[key] for key in _DETAIL_KEYS if sections.get(key)}

    feedback = sections.get("feedback", "")
    if not feedback:
        feedback = _assemble_detail_feedback(details) or NO_FEEDBACK_TEXT

    if "score" not in sections:
        logger.debug("Judge output has no SCORE marker, using default %d", default_score)

    return GradingResult(
        score=score,
        verdict_summary=verdict,
        feedback=feedback,
        source=GradingSource.AI_GRADED,
        sections=details,
    )
