"""Click CLI — play a practice session in the terminal, serve the HTTP API, or check the provider."""

import asyncio
import logging
import sys
import threading
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from config.config_loader import AppConfig, load_config
from objection.cases import CaseFile, load_cases, pick_case
from objection.gateway import TextGenerationGateway, build_gateway
from objection.healthcheck import run_health_check
from objection.models import Mode, Phase, RoundRecord, Scenario, SessionState
from objection.output import (
    format_time,
    print_final_results,
    print_notice,
    print_scenario,
    print_verdict,
    save_to_file,
)
from objection.session import InvalidTransitionError, PracticeSession

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

# Remaining-time marks announced during a round, besides every full minute
_TIME_MARKS = (30, 10)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _announce_time(remaining: int) -> None:
    if remaining in _TIME_MARKS or (remaining > 0 and remaining % 60 == 0):
        console.print(f"[dim]{format_time(remaining)} remaining[/dim]")


class _LineReader:
    """Reads stdin on a daemon thread and hands lines to the event loop.

    A single reader serves every prompt, so a round closed by the timer never
    leaves a stray blocking input() behind. None means end of input.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        threading.Thread(target=self._pump, daemon=True).start()

    def _pump(self) -> None:
        for line in sys.stdin:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, line.rstrip("\r\n"))
        self._loop.call_soon_threadsafe(self._queue.put_nowait, None)

    async def readline(self) -> str | None:
        return await self._queue.get()


async def _choose_scenario(session: PracticeSession, reader: _LineReader, cases: list[CaseFile]) -> Scenario | None:
    """Start the round from a case file, typed text, or generation. None if the user quit."""
    case = pick_case(cases, session.state.current_round, session.state.mode) if cases else None
    if case is not None:
        console.print(f"[dim]Using case file {case.path.name}[/dim]")
        return await session.use_custom_scenario(case.text)

    console.print(
        f"\n[bold]Case {session.state.current_round} of {session.state.total_rounds}[/bold]: "
        "type your own case and press Enter, or just press Enter to generate one ([italic]q[/italic] quits)"
    )
    line = await reader.readline()
    if line is None or line.strip().lower() == "q":
        return None
    if line.strip():
        return await session.use_custom_scenario(line)
    with console.status("Generating case..."):
        return await session.generate_scenario()


async def _collect_argument(session: PracticeSession, reader: _LineReader) -> RoundRecord | None:
    """Read argument lines until a blank line or the timer closes the round."""
    console.print("Write your argument. Submit with an empty line.\n")
    round_done = asyncio.ensure_future(session.wait_for_round())
    lines: list[str] = []

    while not round_done.done():
        read = asyncio.ensure_future(reader.readline())
        done, _ = await asyncio.wait({read, round_done}, return_when=asyncio.FIRST_COMPLETED)
        if read not in done:
            read.cancel()
            break
        line = read.result()
        if line is None:
            round_done.cancel()
            return None
        if line.strip():
            lines.append(line)
            if session.phase is Phase.IN_PROGRESS:
                session.update_draft("\n".join(lines))
            continue
        if not lines:
            continue
        try:
            with console.status("The judge is deliberating..."):
                await session.submit_argument("\n".join(lines))
        except InvalidTransitionError:
            # The timer got there first; its grading is already under way
            logger.debug("Manual submission ignored, round already closed")
        break

    with console.status("The judge is deliberating..."):
        return await round_done


async def _play_session(
    session: PracticeSession,
    reader: _LineReader,
    cases: list[CaseFile],
) -> SessionState | None:
    """Run every round of one session. Returns None if the user quit midway."""
    while session.phase is not Phase.SESSION_COMPLETE:
        scenario = await _choose_scenario(session, reader, cases)
        if scenario is None:
            session.abandon()
            return None

        print_scenario(scenario, session.state.total_rounds, session.duration_sec)

        record = await _collect_argument(session, reader)
        if record is None:
            session.abandon()
            return None
        print_verdict(record)

        if not session.is_last_round:
            console.print("\nPress Enter for the next case...")
            if await reader.readline() is None:
                session.abandon()
                return None
        session.advance()

    print_final_results(session.state)
    return session.state


async def _run_play(
    config: AppConfig,
    gateway: TextGenerationGateway,
    mode: Mode,
    rounds: int,
    cases: list[CaseFile],
    output_dir: Path | None,
) -> None:
    reader = _LineReader(asyncio.get_running_loop())
    session = PracticeSession(
        gateway,
        config,
        mode,
        total_rounds=rounds,
        on_tick=_announce_time,
        on_notice=print_notice,
    )

    while True:
        state = await _play_session(session, reader, cases)
        if state is None:
            console.print("[yellow]Session abandoned.[/yellow]")
            return
        if output_dir is not None:
            saved = save_to_file(state, output_dir)
            console.print(f"\n[dim]Saved to: {saved}[/dim]")

        console.print("\nStart a new trial? [y/N]")
        answer = await reader.readline()
        if answer is None or answer.strip().lower() not in ("y", "yes"):
            return
        session = session.restart()


def _check_gateway(gateway: TextGenerationGateway) -> bool:
    console.print(f"\n[bold]Checking provider {gateway.provider_name}...[/bold]")
    ok, err = asyncio.run(run_health_check(gateway))
    if ok:
        console.print(f"  [green]OK  [/green] {gateway.provider_name}")
    else:
        short_err = err.splitlines()[0][:120] if err else "unknown error"
        console.print(f"  [red]FAIL[/red] {gateway.provider_name}: {short_err}")
    return ok


@click.group()
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Objection! -- timed debate practice with an AI judge.

    \b
    Examples:
      objection play
      objection play --mode rapid --rounds 2
      objection play --cases ./my_cases --provider claude
      objection serve --port 3000
      objection check
    """
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")

    load_dotenv()
    _setup_logging(verbose)

    try:
        ctx.obj = load_config()
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        sys.exit(1)


@main.command()
@click.option("--mode", type=click.Choice([m.value for m in Mode]), default=Mode.NORMAL.value,
              show_default=True, help="Rapid Rush (short cases) or Normal Pace")
@click.option("--rounds", default=None, type=click.IntRange(1, 3), help="Number of cases (default: from config)")
@click.option("--provider", default=None, help="Which model judges (default: from config)")
@click.option("--cases", "cases_dir", default=None, type=click.Path(exists=True, file_okay=False),
              help="Folder of .md case files to use instead of typing or generating cases")
@click.option("--output", "output_path", default=None, help="Transcript directory (default: from config)")
@click.option("--no-save", is_flag=True, default=False, help="Do not save a session transcript")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
@click.pass_obj
def play(
    config: AppConfig,
    mode: str,
    rounds: int | None,
    provider: str | None,
    cases_dir: str | None,
    output_path: str | None,
    no_save: bool,
    skip_health_check: bool,
) -> None:
    """Play a practice session in the terminal."""
    gateway = build_gateway(config, provider)

    if not gateway.configured:
        print_notice(
            "AI unavailable",
            f"Provider '{gateway.provider_name}' is not configured; using preset cases and basic scoring.",
            "warning",
        )
    elif not skip_health_check and not _check_gateway(gateway):
        if not click.confirm("Continue with preset cases and basic scoring as fallback?", default=True):
            sys.exit(0)

    cases = load_cases(Path(cases_dir)) if cases_dir else []
    effective_rounds = rounds if rounds is not None else config.defaults.rounds
    output_dir = None if no_save else (Path(output_path) if output_path else config.defaults.output_dir)

    try:
        asyncio.run(_run_play(config, gateway, Mode(mode), effective_rounds, cases, output_dir))
    except KeyboardInterrupt:
        console.print("\n[yellow]Session abandoned.[/yellow]")


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=3000, show_default=True, type=int)
@click.option("--provider", default=None, help="Which model backs the API (default: from config)")
@click.pass_obj
def serve(config: AppConfig, host: str, port: int, provider: str | None) -> None:
    """Serve the generate-prompt / judge-argument HTTP API."""
    import uvicorn

    from objection.api import create_app

    gateway = build_gateway(config, provider)
    uvicorn.run(create_app(config, gateway), host=host, port=port)


@main.command()
@click.option("--provider", default=None, help="Provider to check (default: from config)")
@click.pass_obj
def check(config: AppConfig, provider: str | None) -> None:
    """Ping the configured provider."""
    gateway = build_gateway(config, provider)
    if not gateway.configured:
        console.print(f"[bold red]Error:[/bold red] Provider '{gateway.provider_name}' is not configured. Check API keys in .env.")
        sys.exit(1)
    if not _check_gateway(gateway):
        sys.exit(1)


if __name__ == "__main__":
    main()
