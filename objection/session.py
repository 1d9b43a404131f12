"""Round state machine for one practice session.

A session walks each round through
``awaiting_scenario -> in_progress -> grading -> round_complete`` and, after the
last round, ends in ``session_complete``. Generation and grading failures never
escape: they become a preset case or a heuristic grade plus a notice.

Everything runs on one event loop. Phase checks happen synchronously between
awaits, which is what makes the timer and a manual submission mutually
exclusive without locks.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from config.config_loader import AppConfig
from objection import catalog
from objection.gateway import TextGenerationGateway
from objection.heuristic import grade_heuristically
from objection.models import (
    Argument,
    GradingResult,
    Mode,
    Phase,
    RoundRecord,
    Scenario,
    ScenarioOrigin,
    SessionState,
)
from objection.parser import ParseFailure, parse_grading
from objection.prompts import build_case_prompt, build_judge_prompt
from objection.providers.base import ProviderError

logger = logging.getLogger(__name__)

NOTICE_PRESET_CASE = ("Using preset case", "AI generation unavailable, using a preset case instead.")
NOTICE_BASIC_SCORING = ("Basic scoring", "AI judging unavailable, using basic scoring algorithm.")
NOTICE_AUTO_SUBMITTED = ("Auto-submitted", "Time expired, submitting what you had written.")


class SessionError(Exception):
    """Base class for session state machine errors."""


class InvalidTransitionError(SessionError):
    """An operation was requested in a phase that does not allow it."""


class SessionAbandonedError(SessionError):
    """The session was abandoned while an operation was pending."""


class PracticeSession:
    """Owns one SessionState and drives it round by round."""

    def __init__(
        self,
        gateway: TextGenerationGateway,
        config: AppConfig,
        mode: Mode | str,
        *,
        total_rounds: int | None = None,
        tick_sec: float | None = None,
        on_tick: Callable[[int], None] | None = None,
        on_notice: Callable[[str, str], None] | None = None,
        on_round_complete: Callable[[RoundRecord], None] | None = None,
    ) -> None:
        mode = Mode(mode)
        rounds = total_rounds if total_rounds is not None else config.defaults.rounds
        if not 1 <= rounds <= catalog.ROUND_COUNT:
            raise ValueError(f"total_rounds must be between 1 and {catalog.ROUND_COUNT}, got {rounds}")

        self._gateway = gateway
        self._config = config
        self._mode_cfg = config.modes[mode.value]
        self._tick_sec = tick_sec if tick_sec is not None else config.defaults.tick_sec
        self._on_tick = on_tick
        self._on_notice = on_notice
        self._on_round_complete = on_round_complete

        self.state = SessionState(mode=mode, total_rounds=rounds)

        self._scenario: Scenario | None = None
        self._draft = ""
        self._remaining_sec = 0
        self._scenario_pending = False
        self._countdown: asyncio.Task | None = None
        self._round_done: asyncio.Future | None = None

    # ----- read-only views -----

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def scenario(self) -> Scenario | None:
        return self._scenario

    @property
    def remaining_sec(self) -> int:
        return self._remaining_sec

    @property
    def duration_sec(self) -> int:
        return self._mode_cfg.duration_sec

    @property
    def is_last_round(self) -> bool:
        return self.state.current_round >= self.state.total_rounds

    # ----- awaiting_scenario -----

    async def use_custom_scenario(self, text: str) -> Scenario:
        """Start the round with a user-supplied case."""
        self._require_scenario_step("use a custom case")
        if not text or not text.strip():
            raise ValueError("Please enter a case scenario first")
        scenario = self._make_scenario(text.strip(), ScenarioOrigin.CUSTOM)
        self._start_round(scenario)
        return scenario

    async def generate_scenario(self) -> Scenario:
        """Ask the gateway for a case; on any failure use the preset for this round."""
        self._require_scenario_step("generate a case")
        self._scenario_pending = True
        round_number = self.state.current_round
        prompt = build_case_prompt(
            self._config.prompts, self._mode_cfg, round_number, self.state.total_rounds
        )
        scenario: Scenario | None = None
        try:
            text = await self._gateway.generate(prompt, round_number=round_number)
            scenario = self._make_scenario(text, ScenarioOrigin.GENERATED)
        except ProviderError as exc:
            logger.warning("Case generation failed in round %d: %s", round_number, exc)
        finally:
            self._scenario_pending = False

        if self.state.phase is Phase.ABANDONED:
            raise SessionAbandonedError("Session was abandoned while generating a case")

        if scenario is None:
            scenario = catalog.scenario(self.state.mode, round_number)
            self._notify(*NOTICE_PRESET_CASE)

        self._start_round(scenario)
        return scenario

    # ----- in_progress -----

    def update_draft(self, text: str) -> None:
        """Remember what the user has typed so far; submitted if the timer runs out."""
        self._require(Phase.IN_PROGRESS, "edit the argument")
        self._draft = text

    async def submit_argument(self, text: str) -> RoundRecord:
        """Submit the argument and grade it. Only the first trigger per round wins."""
        argument = Argument(
            text=text,
            submitted_at=datetime.now(timezone.utc),
            was_auto_submitted=False,
        )
        return await self._close_round(argument)

    async def wait_for_round(self) -> RoundRecord:
        """Wait for the current round's record, whichever trigger closes it."""
        if self._round_done is None:
            raise InvalidTransitionError("No round has been started")
        return await asyncio.shield(self._round_done)

    # ----- round_complete -----

    def advance(self) -> Phase:
        """Move to the next round, or finish the session after the last one."""
        self._require(Phase.ROUND_COMPLETE, "advance")
        if self.is_last_round:
            self.state.phase = Phase.SESSION_COMPLETE
            logger.info(
                "Session complete: total %d, average %d",
                self.state.total_score,
                self.state.average_score,
            )
        else:
            self.state.current_round += 1
            self._scenario = None
            self._draft = ""
            self._round_done = None
            self.state.phase = Phase.AWAITING_SCENARIO
        return self.state.phase

    # ----- cancellation -----

    def abandon(self) -> None:
        """Discard the session from any phase. Pending results are dropped."""
        if self.state.phase is Phase.ABANDONED:
            return
        logger.info("Session abandoned in round %d (%s)", self.state.current_round, self.state.phase.value)
        self.state.phase = Phase.ABANDONED
        self._cancel_countdown()
        if self._round_done is not None and not self._round_done.done():
            self._round_done.set_exception(SessionAbandonedError("Session was abandoned"))
            # Mark retrieved so an unawaited future does not log a warning
            self._round_done.exception()

    def restart(self) -> "PracticeSession":
        """Return a brand-new session with the same settings.

        An unfinished session is abandoned first; a completed one is left as is.
        """
        if self.state.phase is not Phase.SESSION_COMPLETE:
            self.abandon()
        return PracticeSession(
            self._gateway,
            self._config,
            self.state.mode,
            total_rounds=self.state.total_rounds,
            tick_sec=self._tick_sec,
            on_tick=self._on_tick,
            on_notice=self._on_notice,
            on_round_complete=self._on_round_complete,
        )

    # ----- internals -----

    def _require(self, phase: Phase, action: str) -> None:
        if self.state.phase is Phase.ABANDONED:
            raise SessionAbandonedError(f"Cannot {action}: session was abandoned")
        if self.state.phase is not phase:
            raise InvalidTransitionError(f"Cannot {action} while session is {self.state.phase.value}")

    def _require_scenario_step(self, action: str) -> None:
        self._require(Phase.AWAITING_SCENARIO, action)
        if self._scenario_pending:
            raise InvalidTransitionError(f"Cannot {action}: case generation already in flight")

    def _make_scenario(self, text: str, origin: ScenarioOrigin) -> Scenario:
        return Scenario(
            id=f"{origin.value}-{uuid.uuid4().hex[:8]}",
            text=text,
            round=self.state.current_round,
            mode=self.state.mode,
            origin=origin,
        )

    def _notify(self, title: str, message: str) -> None:
        logger.info("%s: %s", title, message)
        if self._on_notice:
            self._on_notice(title, message)

    def _start_round(self, scenario: Scenario) -> None:
        self._scenario = scenario
        self._draft = ""
        self._remaining_sec = self._mode_cfg.duration_sec
        self.state.phase = Phase.IN_PROGRESS
        self._round_done = asyncio.get_running_loop().create_future()
        self._countdown = asyncio.create_task(self._run_countdown())
        self._countdown.add_done_callback(self._countdown_finished)
        logger.info(
            "Round %d started (%s case, %ds)",
            self.state.current_round,
            scenario.origin.value,
            self._remaining_sec,
        )

    async def _run_countdown(self) -> None:
        while self._remaining_sec > 0:
            await asyncio.sleep(self._tick_sec)
            if self.state.phase is not Phase.IN_PROGRESS:
                return
            self._remaining_sec -= 1
            if self._on_tick:
                self._on_tick(self._remaining_sec)

        if self.state.phase is not Phase.IN_PROGRESS:
            return
        self._notify(*NOTICE_AUTO_SUBMITTED)
        argument = Argument(
            text=self._draft,
            submitted_at=datetime.now(timezone.utc),
            was_auto_submitted=True,
        )
        try:
            await self._close_round(argument)
        except SessionAbandonedError:
            logger.debug("Timed-out round %d discarded after abandon", self.state.current_round)

    def _countdown_finished(self, task: asyncio.Task) -> None:
        # The session keeps its reference until the task is done, even when
        # the countdown itself closed the round
        if self._countdown is task:
            self._countdown = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error("Countdown for round %d failed: %s", self.state.current_round, exc)
        if self._round_done is not None and not self._round_done.done():
            self._round_done.set_exception(exc)

    def _cancel_countdown(self) -> None:
        task = self._countdown
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def _close_round(self, argument: Argument) -> RoundRecord:
        # Check-and-set with no await in between: leaves in_progress exactly once
        self._require(Phase.IN_PROGRESS, "submit")
        scenario = self._scenario
        if scenario is None:
            raise InvalidTransitionError("Cannot submit: no case has been set for this round")
        self.state.phase = Phase.GRADING
        self._cancel_countdown()

        round_number = self.state.current_round

        result = await self._grade(scenario, argument, round_number)

        if self.state.phase is Phase.ABANDONED:
            raise SessionAbandonedError("Session was abandoned while grading")

        record = RoundRecord(
            round_number=round_number,
            scenario=scenario,
            argument=argument,
            result=result,
        )
        self.state.history.append(record)
        self.state.phase = Phase.ROUND_COMPLETE
        logger.info(
            "Round %d graded: %d (%s)",
            round_number,
            result.score,
            result.source.value,
        )

        if self._round_done is not None and not self._round_done.done():
            self._round_done.set_result(record)
        if self._on_round_complete:
            self._on_round_complete(record)
        return record

    async def _grade(self, scenario: Scenario, argument: Argument, round_number: int) -> GradingResult:
        prompt = build_judge_prompt(self._config.prompts, scenario.text, argument.text)
        try:
            raw = await self._gateway.generate(prompt, round_number=round_number)
            return parse_grading(raw, default_score=self._config.defaults.default_score)
        except (ProviderError, ParseFailure) as exc:
            logger.warning("AI judging failed in round %d, using heuristic grader: %s", round_number, exc)
            if self.state.phase is not Phase.ABANDONED:
                self._notify(*NOTICE_BASIC_SCORING)
            return grade_heuristically(argument.text)
