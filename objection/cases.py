"""Custom case files: markdown with optional YAML frontmatter (round, mode)."""

import logging
from dataclasses import dataclass
from pathlib import Path

import frontmatter

from objection.models import Mode

logger = logging.getLogger(__name__)


@dataclass
class CaseFile:
    path: Path
    text: str
    round: int | None = None
    mode: Mode | None = None


def scan_cases(cases_dir: Path) -> list[Path]:
    """Return all .md files in cases_dir, sorted by mtime ascending (oldest first)."""
    if not cases_dir.is_dir():
        raise FileNotFoundError(f"Cases folder not found: {cases_dir}")
    files = list(cases_dir.glob("*.md"))
    return sorted(files, key=lambda p: p.stat().st_mtime)


def parse_case_file(file_path: Path) -> CaseFile:
    """Parse a case file. Frontmatter keys ``round`` and ``mode`` are optional.

    Raises:
        ValueError: If ``round`` is not an integer or ``mode`` is unknown.
    """
    post = frontmatter.load(str(file_path))
    meta = dict(post.metadata)

    round_number = meta.get("round")
    if round_number is not None:
        try:
            round_number = int(round_number)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"{file_path.name}: round must be an integer, got {round_number!r}") from exc

    mode = meta.get("mode")
    if mode is not None:
        try:
            mode = Mode(str(mode).strip().lower())
        except ValueError as exc:
            raise ValueError(f"{file_path.name}: mode must be 'rapid' or 'normal', got {mode!r}") from exc

    return CaseFile(path=file_path, text=post.content.strip(), round=round_number, mode=mode)


def load_cases(cases_dir: Path) -> list[CaseFile]:
    """Parse every case file in the folder, skipping empty or invalid ones."""
    cases: list[CaseFile] = []
    for path in scan_cases(cases_dir):
        try:
            case = parse_case_file(path)
        except ValueError as exc:
            logger.warning("Skipping case file: %s", exc)
            continue
        if not case.text:
            logger.warning("Skipping empty case file: %s", path.name)
            continue
        cases.append(case)
    logger.info("Loaded %d custom case(s) from %s", len(cases), cases_dir)
    return cases


def pick_case(cases: list[CaseFile], round_number: int, mode: Mode) -> CaseFile | None:
    """Choose the case for a round.

    A file whose frontmatter names this round wins; otherwise files without a
    round are used in order (the first one for round 1, and so on). Files
    pinned to the other mode are ignored.
    """
    eligible = [c for c in cases if c.mode is None or c.mode is mode]
    for case in eligible:
        if case.round == round_number:
            return case
    unnumbered = [c for c in eligible if c.round is None]
    if round_number - 1 < len(unnumbered):
        return unnumbered[round_number - 1]
    return None
