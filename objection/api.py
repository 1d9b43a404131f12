"""
FastAPI app for browser clients:
- POST /api/generate-prompt generates a case, or answers 500 with a preset fallback
- POST /api/judge-argument grades an argument, never returning an unusable result
- GET  /api/health reports which provider backs the app

Requests are independent; session state lives in the client.
"""

import logging
from typing import Literal, Optional

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from config.config_loader import AppConfig, load_config
from objection import catalog
from objection.gateway import TextGenerationGateway, build_gateway
from objection.heuristic import grade_heuristically
from objection.models import GradingResult
from objection.parser import ParseFailure, format_verdict_text, parse_grading
from objection.prompts import build_case_prompt, build_judge_prompt
from objection.providers.base import ProviderError

logger = logging.getLogger(__name__)


class GeneratePromptRequest(BaseModel):
    currentRound: int = 1
    lessonType: Literal["rapid", "normal"] = "normal"
    prompt: Optional[str] = Field(default=None, max_length=10_000)


class JudgeRequest(BaseModel):
    prompt: Optional[str] = None
    argument: Optional[str] = None


def _judge_payload(verdict: str, result: GradingResult, using_fallback: bool) -> dict:
    return {
        "verdict": verdict,
        "score": result.score,
        "summary": result.verdict_summary,
        "feedback": result.feedback,
        "source": result.source.value,
        "usingFallback": using_fallback,
    }


def create_app(
    config: AppConfig | None = None,
    gateway: TextGenerationGateway | None = None,
) -> FastAPI:
    """Build the app around one gateway. Both default to the loaded settings."""
    config = config or load_config()
    gateway = gateway or build_gateway(config)

    app = FastAPI(
        title="Objection!",
        description="Debate practice: case generation and argument judging",
        version="1.0.0",
    )

    @app.get("/api/health")
    async def health() -> dict:
        return {
            "status": "ok",
            "provider": gateway.provider_name,
            "configured": gateway.configured,
        }

    @app.post("/api/generate-prompt")
    async def generate_prompt(req: GeneratePromptRequest) -> JSONResponse:
        # Presets and difficulty wording only exist for rounds 1..ROUND_COUNT
        round_number = min(max(req.currentRound, 1), catalog.ROUND_COUNT)
        if req.prompt and req.prompt.strip():
            prompt = req.prompt
        else:
            prompt = build_case_prompt(
                config.prompts,
                config.modes[req.lessonType],
                round_number,
                config.defaults.rounds,
            )

        try:
            text = await gateway.generate(prompt, round_number=round_number)
        except ProviderError as exc:
            logger.warning("Generate prompt error: %s", exc)
            preset = catalog.scenario(req.lessonType, round_number)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": True,
                    "message": str(exc),
                    "fallback": {
                        "prompt": preset.text,
                        "round": preset.round,
                        "mode": preset.mode.value,
                    },
                },
            )
        return JSONResponse({"prompt": text})

    @app.post("/api/judge-argument")
    async def judge_argument(req: JudgeRequest) -> JSONResponse:
        if not req.prompt or not req.prompt.strip() or not req.argument or not req.argument.strip():
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "Missing prompt or argument"},
            )

        judge_prompt = build_judge_prompt(config.prompts, req.prompt, req.argument)
        try:
            raw = await gateway.generate(judge_prompt)
            result = parse_grading(raw, default_score=config.defaults.default_score)
            return JSONResponse(_judge_payload(raw, result, using_fallback=False))
        except (ProviderError, ParseFailure) as exc:
            logger.warning("Judge argument error, using heuristic grader: %s", exc)
        except Exception:
            logger.exception("Unexpected judge argument failure, using heuristic grader")

        result = grade_heuristically(req.argument)
        return JSONResponse(_judge_payload(format_verdict_text(result), result, using_fallback=True))

    return app
