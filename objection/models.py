"""Pure dataclasses for the practice session. No I/O, no deps."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Mode(str, Enum):
    RAPID = "rapid"
    NORMAL = "normal"


class ScenarioOrigin(str, Enum):
    GENERATED = "generated"
    PRESET = "preset"
    CUSTOM = "custom"


class GradingSource(str, Enum):
    AI_GRADED = "ai_graded"
    HEURISTIC_FALLBACK = "heuristic_fallback"


class Phase(str, Enum):
    AWAITING_SCENARIO = "awaiting_scenario"
    IN_PROGRESS = "in_progress"
    GRADING = "grading"
    ROUND_COMPLETE = "round_complete"
    SESSION_COMPLETE = "session_complete"
    ABANDONED = "abandoned"


def clamp_score(value: int) -> int:
    """Clamp a score into the 0..100 range."""
    return max(0, min(100, int(value)))


@dataclass
class ModelResponse:
    provider: str          # "gemini", "openai", "claude"
    model: str             # actual model string used
    content: str
    latency_sec: float
    token_count: int | None


@dataclass(frozen=True)
class Scenario:
    id: str
    text: str
    round: int
    mode: Mode
    origin: ScenarioOrigin


@dataclass(frozen=True)
class Argument:
    text: str
    submitted_at: datetime
    was_auto_submitted: bool = False


@dataclass(frozen=True)
class GradingResult:
    score: int                    # always clamped to 0..100
    verdict_summary: str
    feedback: str
    source: GradingSource
    sections: dict[str, str] = field(default_factory=dict)
    breakdown: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class RoundRecord:
    round_number: int
    scenario: Scenario
    argument: Argument
    result: GradingResult


@dataclass
class SessionState:
    mode: Mode
    total_rounds: int
    current_round: int = 1
    history: list[RoundRecord] = field(default_factory=list)
    phase: Phase = Phase.AWAITING_SCENARIO

    @property
    def total_score(self) -> int:
        return sum(record.result.score for record in self.history)

    @property
    def average_score(self) -> int:
        if not self.history:
            return 0
        # Half-up, so 80.5 reads as 81 on the results screen
        return int(self.total_score / len(self.history) + 0.5)

    @property
    def scores(self) -> list[int]:
        return [record.result.score for record in self.history]
