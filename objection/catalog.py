"""Preset cases used when case generation fails. One per (mode, round)."""

from objection.models import Mode, Scenario, ScenarioOrigin

ROUND_COUNT = 3

_PRESET_CASES: dict[Mode, tuple[str, ...]] = {
    Mode.RAPID: (
        "Your client, a gig worker, was fired by an algorithm without explanation. "
        "Defend their right to transparency.",
        "The scenario: A school district uses facial recognition that misidentifies minority students. "
        "Argue for policy change.",
        "Your client faces housing discrimination from AI screening tools. "
        "Build a case for fair housing protections.",
    ),
    Mode.NORMAL: (
        "Your client, Maya Chen, is a software engineer who was denied a promotion after an AI hiring tool "
        "flagged her resume. The algorithm was trained on historical data that favored male candidates. "
        "She believes the system perpetuates gender bias in tech leadership. Defend her right to fair "
        "evaluation and argue for algorithmic transparency in hiring.",
        "The scenario involves a rural school district in Appalachia that lacks high-speed internet access, "
        "preventing students from participating in online learning opportunities. Meanwhile, neighboring "
        "affluent districts offer advanced coding courses and tech certifications. Advocate for equitable "
        "technology infrastructure as a civil right.",
        "Your client, James Rodriguez, is a freelance content creator whose posts about immigration rights "
        "were shadowbanned by a major social media platform. The algorithm flagged his content as "
        "'controversial' without human review. Defend his free speech rights and argue for platform "
        "accountability in content moderation.",
    ),
}


def scenario(mode: Mode | str, round_number: int) -> Scenario:
    """Return the preset case for a mode and 1-based round number.

    Raises:
        ValueError: If the round number is outside 1..ROUND_COUNT.
    """
    mode = Mode(mode)
    if not 1 <= round_number <= ROUND_COUNT:
        raise ValueError(f"round_number must be between 1 and {ROUND_COUNT}, got {round_number}")
    return Scenario(
        id=f"preset-{mode.value}-{round_number}",
        text=_PRESET_CASES[mode][round_number - 1],
        round=round_number,
        mode=mode,
        origin=ScenarioOrigin.PRESET,
    )
