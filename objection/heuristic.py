"""Deterministic keyword/length grader used when AI judging is unavailable.

Four components (reasoning, evidence, empathy, rhetoric) each start at
``BASE_POINTS`` and collect bonuses from an ordered table of rules, capped at
``COMPONENT_CAP``. The total therefore always lands in [40, 100]. The rule
table is plain data so each rule can be exercised on its own.
"""

import logging
import re
from dataclasses import dataclass, field

from objection.models import GradingResult, GradingSource, clamp_score

logger = logging.getLogger(__name__)

BASE_POINTS = 10
COMPONENT_CAP = 25
COMPONENTS = ("reasoning", "evidence", "empathy", "rhetoric")

EVIDENCE_KEYWORDS = (
    "example", "evidence", "study", "studies", "research", "data",
    "statistic", "fact", "survey", "report", "percent",
)
PERSPECTIVE_KEYWORDS = (
    "perspective", "impact", "affect", "feel", "experience", "harm", "benefit",
)
IMPACT_KEYWORDS = (
    "harm", "hurt", "suffer", "vulnerable", "communit", "marginaliz",
    "marginalis", "family", "families", "lives", "livelihood", "well-being",
    "wellbeing",
)
STRUCTURE_KEYWORDS = (
    "first", "second", "third", "finally", "furthermore", "moreover",
    "in conclusion", "to conclude", "therefore", "additionally",
)
COUNTER_KEYWORDS = (
    "however", "although", "critic", "on the other hand", "opponents",
    "some argue", "while", "despite", "nevertheless", "admittedly", "counterargument",
)


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    """Whole-word prefix match: 'harm' matches 'harms' and 'harmful'."""
    alternatives = "|".join(re.escape(k).replace(r"\ ", r"\s+") for k in keywords)
    return re.compile(rf"(?<!\w)(?:{alternatives})\w*", re.IGNORECASE)


@dataclass(frozen=True)
class HeuristicRule:
    component: str
    name: str
    weight: int
    strength: str
    growth: str
    min_length: int | None = None
    keywords: tuple[str, ...] = ()
    min_hits: int = 1
    # Count each keyword once, however often it appears
    distinct: bool = False
    _pattern: re.Pattern[str] | None = field(default=None, init=False, repr=False, compare=False)
    _keyword_patterns: tuple[re.Pattern[str], ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.keywords:
            object.__setattr__(self, "_pattern", _keyword_pattern(self.keywords))
        if self.distinct:
            object.__setattr__(
                self, "_keyword_patterns", tuple(_keyword_pattern((k,)) for k in self.keywords)
            )

    def hits(self, text: str) -> int:
        if self._pattern is None:
            return 0
        if self.distinct:
            return sum(1 for pattern in self._keyword_patterns if pattern.search(text))
        return len(self._pattern.findall(text))

    def fires(self, text: str) -> bool:
        if self.min_length is not None:
            return len(text) > self.min_length
        return self.hits(text) >= self.min_hits


RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule(
        "reasoning", "developed", 8,
        strength="A developed line of reasoning",
        growth="Develop your reasoning beyond a few sentences",
        min_length=300,
    ),
    HeuristicRule(
        "reasoning", "in_depth", 7,
        strength="Depth and thoroughness",
        growth="Take the argument further with a fuller explanation",
        min_length=500,
    ),
    HeuristicRule(
        "evidence", "evidence_language", 10,
        strength="Supporting evidence",
        growth="Cite concrete examples, studies, or data",
        keywords=EVIDENCE_KEYWORDS,
    ),
    HeuristicRule(
        "evidence", "multiple_evidence", 5,
        strength="Several independent pieces of support",
        growth="Back each main claim with its own piece of evidence",
        keywords=EVIDENCE_KEYWORDS, min_hits=2, distinct=True,
    ),
    HeuristicRule(
        "empathy", "perspective_language", 10,
        strength="Attention to the perspective of those affected",
        growth="Center the perspective of the people affected",
        keywords=PERSPECTIVE_KEYWORDS,
    ),
    HeuristicRule(
        "empathy", "impact_detail", 5,
        strength="Concrete human impact",
        growth="Describe the concrete harm or benefit to real people",
        keywords=IMPACT_KEYWORDS, min_hits=2,
    ),
    HeuristicRule(
        "rhetoric", "structure", 8,
        strength="Clear structure and signposting",
        growth="Signpost your points (first, furthermore, in conclusion)",
        keywords=STRUCTURE_KEYWORDS,
    ),
    HeuristicRule(
        "rhetoric", "counterargument", 7,
        strength="Engagement with opposing views",
        growth="Anticipate and answer the strongest counterargument",
        keywords=COUNTER_KEYWORDS,
    ),
)

# (positive, constructive) commentary per component
_COMMENTARY: dict[str, tuple[str, str]] = {
    "reasoning": (
        "Your reasoning is developed enough for the judge to follow each step of your case.",
        "Your reasoning needs more development: walk the judge from your claim to your conclusion.",
    ),
    "evidence": (
        "You support your position with evidence, which makes the case more convincing.",
        "Your claims need support: add concrete examples, research, or data.",
    ),
    "empathy": (
        "You keep the people affected by this case in view throughout.",
        "Show how the issue affects real people and whose perspective is at stake.",
    ),
    "rhetoric": (
        "Your argument is organized and engages with the other side.",
        "Organize your points with clear transitions and respond to likely objections.",
    ),
}

_NO_ARGUMENT_VERDICT = "No argument was submitted before time ran out, so the case went unargued."
_FALLBACK_STRENGTH = "Taking on the case under time pressure"
_FALLBACK_GROWTH = "Keep practising to make this level of argument a habit"


def _verdict_for(score: int, text: str) -> str:
    if not text.strip():
        return _NO_ARGUMENT_VERDICT
    if score >= 85:
        return "A compelling argument that would likely persuade the court."
    if score >= 60:
        return "A solid argument with a clear position; stronger support would make it more persuasive."
    return "Your argument is brief but shows initial reasoning. More development would strengthen your case."


def score_components(text: str) -> tuple[dict[str, int], dict[str, bool]]:
    """Return (component -> points, rule name -> fired) for the given text."""
    points = {component: BASE_POINTS for component in COMPONENTS}
    fired: dict[str, bool] = {}
    for rule in RULES:
        hit = rule.fires(text)
        fired[rule.name] = hit
        if hit:
            points[rule.component] += rule.weight
    return {c: min(COMPONENT_CAP, p) for c, p in points.items()}, fired


def grade_heuristically(argument_text: str | None) -> GradingResult:
    """Grade an argument without AI. Never raises."""
    text = argument_text or ""
    breakdown, fired = score_components(text)
    score = clamp_score(sum(breakdown.values()))

    sections: dict[str, str] = {}
    comments: list[str] = []
    for component in COMPONENTS:
        # A component reads as positive when its first signal fired
        first_rule = next(r for r in RULES if r.component == component)
        positive, constructive = _COMMENTARY[component]
        comment = positive if fired[first_rule.name] else constructive
        sections[component] = comment
        comments.append(comment)

    strengths = [r.strength for r in RULES if fired[r.name]] or [_FALLBACK_STRENGTH]
    growth = [r.growth for r in RULES if not fired[r.name]] or [_FALLBACK_GROWTH]
    sections["strengths"] = "; ".join(strengths)
    sections["growth_areas"] = "; ".join(growth)

    feedback = (
        " ".join(comments)
        + f"\n\nStrengths: {sections['strengths']}."
        + f"\nAreas for growth: {sections['growth_areas']}."
    )

    logger.debug("Heuristic grade %d from breakdown %s", score, breakdown)

    return GradingResult(
        score=score,
        verdict_summary=_verdict_for(score, text),
        feedback=feedback,
        source=GradingSource.HEURISTIC_FALLBACK,
        sections=sections,
        breakdown=breakdown,
    )
