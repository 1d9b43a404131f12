"""Load settings.yaml into typed dataclasses. Validates values at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

# Preset cases exist for this many rounds per mode
_MAX_ROUNDS = 3


@dataclass
class ModelConfig:
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None


@dataclass
class ModeConfig:
    name: str              # "rapid" or "normal"
    label: str
    duration_sec: int


@dataclass
class PromptsConfig:
    case: str
    judge: str
    case_rapid_rule: str = ""


@dataclass
class DefaultsConfig:
    rounds: int
    provider: str
    output_dir: Path
    default_score: int = 75
    tick_sec: float = 1.0


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    modes: dict[str, ModeConfig]
    models: dict[str, ModelConfig]
    prompts: PromptsConfig
    available_providers: set[str] = field(default_factory=set)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing, ValueError on invalid
    values. Logs missing API keys but does not raise — the gateway reports
    NotConfigured when the chosen provider has no key.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        rounds=int(defaults_raw["rounds"]),
        provider=str(defaults_raw["provider"]),
        output_dir=Path(defaults_raw["output_dir"]),
        default_score=int(defaults_raw.get("default_score", 75)),
        tick_sec=float(defaults_raw.get("tick_sec", 1.0)),
    )
    if not 1 <= defaults.rounds <= _MAX_ROUNDS:
        raise ValueError(f"defaults.rounds must be between 1 and {_MAX_ROUNDS}, got {defaults.rounds}")
    if not 0 <= defaults.default_score <= 100:
        raise ValueError(f"defaults.default_score must be between 0 and 100, got {defaults.default_score}")
    if defaults.tick_sec <= 0:
        raise ValueError("defaults.tick_sec must be positive")

    modes: dict[str, ModeConfig] = {}
    for mode_name in ("rapid", "normal"):
        mode_raw = raw["modes"][mode_name]
        mode_cfg = ModeConfig(
            name=mode_name,
            label=str(mode_raw.get("label", mode_name.title())),
            duration_sec=int(mode_raw["duration_sec"]),
        )
        if mode_cfg.duration_sec <= 0:
            raise ValueError(f"modes.{mode_name}.duration_sec must be positive")
        modes[mode_name] = mode_cfg

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        case=prompts_raw["case"],
        judge=prompts_raw["judge"],
        case_rapid_rule=prompts_raw.get("case_rapid_rule", ""),
    )

    models: dict[str, ModelConfig] = {}
    available_providers: set[str] = set()

    for provider_name, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            name=provider_name,
            sdk=model_raw["sdk"],
            model=model_raw["model"],
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
        )
        models[provider_name] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider has no API key: %s — set %s in .env",
                provider_name,
                model_raw["api_key_env"],
            )

    if defaults.provider not in models:
        raise ValueError(f"defaults.provider '{defaults.provider}' is not defined under models")

    return AppConfig(
        defaults=defaults,
        modes=modes,
        models=models,
        prompts=prompts,
        available_providers=available_providers,
    )
