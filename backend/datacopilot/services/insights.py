"""
AI Insight Service

Forwards the computed dataset statistics (never the full data, only a
small row sample) to a hosted language model and validates its
three-section JSON reply.

One request, one response: no streaming and no automatic retries. Every
failure surfaces as an ``InsightError`` carrying a human-readable message
and the HTTP status the API should answer with.
"""

import asyncio
import json
import logging
import time
from typing import Any, List, Optional, Protocol, Sequence

import anthropic
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from ..core.config import Settings
from ..core.types import ColumnProfile, DatasetSummary

logger = logging.getLogger("datacopilot.insights")

PROVIDER_GROQ = "groq"
PROVIDER_ANTHROPIC = "anthropic"

SYSTEM_PROMPT = """
You are a senior data analyst. You receive:
- a dataset summary (rows, columns, numeric/categorical/date columns, missing values)
- column-level information
- a small sample of rows

Your job is to:
1) Explain in plain English what this dataset looks like.
2) Highlight the most interesting patterns, trends, or anomalies.
3) Suggest 3-5 practical recommendations or next steps for someone analysing this data.

You MUST return ONLY valid JSON with this exact shape:

{
  "overview": string,
  "keyFindings": string,
  "recommendations": string
}

STRICT RULES:
- All values MUST be valid JSON strings.
- If you want bullet points, put them INSIDE the string, for example:
  "- point one\\n- point two\\n- point three"
- Do NOT write any "*" or "-" or bullet markers outside of quoted strings.
- Do NOT include backticks, markdown, code blocks or any text outside the JSON object.
- Do NOT add extra fields.
""".strip()


# ─────────────────────── errors ───────────────────────

class InsightError(Exception):
    """Base class for insight failures reported back to the caller."""

    kind = "upstream"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class InsightInputError(InsightError):
    """Request is missing required inputs; the model was not contacted."""
    kind = "input"
    status_code = 400


class InsightUpstreamError(InsightError):
    """The provider failed, timed out or returned no text."""
    kind = "upstream"
    status_code = 500


class InsightParseError(InsightError):
    """The provider replied, but not with the required JSON object."""
    kind = "parse"
    status_code = 500


class MissingCredentialsError(RuntimeError):
    """The selected provider has no API key configured."""


# ─────────────────────── result model ───────────────────────

class InsightResult(BaseModel):
    """The model's three-section summary. Extra fields are rejected."""

    model_config = ConfigDict(extra="forbid")

    overview: StrictStr
    key_findings: StrictStr = Field(alias="keyFindings")
    recommendations: StrictStr

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


# ─────────────────────── providers ───────────────────────

class InsightProvider(Protocol):
    name: str
    model: str

    async def complete(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        """Return the model's text reply, or None when it produced none."""
        ...


class GroqInsightProvider:
    """Groq chat completions through its OpenAI-compatible endpoint."""

    name = PROVIDER_GROQ

    def __init__(self, api_key: str, model: str, base_url: str,
                 temperature: float = 0.3, max_tokens: int = 700, timeout: float = 60.0):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)

    async def complete(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            response_format={"type": "json_object"},
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if not completion.choices:
            return None
        return completion.choices[0].message.content


class AnthropicInsightProvider:
    """Anthropic Messages API."""

    name = PROVIDER_ANTHROPIC

    def __init__(self, api_key: str, model: str,
                 temperature: float = 0.3, max_tokens: int = 700, timeout: float = 60.0):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)

    async def complete(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        return text or None


# ─────────────────────── service ───────────────────────

def build_user_prompt(
    dataset_summary: DatasetSummary,
    column_summaries: Sequence[ColumnProfile],
    sample_rows: Sequence[Sequence[str]],
) -> str:
    """Embed the three structures as indented JSON."""
    return "\n".join([
        "DATASET SUMMARY (JSON):",
        json.dumps(dataset_summary.to_dict(), indent=2),
        "",
        "COLUMNS (JSON):",
        json.dumps([c.to_dict() for c in column_summaries], indent=2),
        "",
        "SAMPLE ROWS (first rows, JSON):",
        json.dumps([list(r) for r in sample_rows], indent=2),
    ])


def parse_insight_reply(content: str) -> InsightResult:
    """Validate the raw reply; logs the content when it does not fit."""
    try:
        return InsightResult.model_validate_json(content)
    except ValidationError as exc:
        logger.error("Model reply is not a valid insight object: %s", exc.errors(include_input=False))
        logger.error("Raw model reply: %r", content)
        raise InsightParseError("Failed to parse model response") from exc


class InsightService:
    """Requests a natural-language summary for a profiled dataset."""

    def __init__(self, provider: InsightProvider, sample_row_limit: int = 20,
                 timeout: Optional[float] = None):
        self.provider = provider
        self.sample_row_limit = sample_row_limit
        self.timeout = timeout

    async def generate(
        self,
        dataset_summary: Optional[DatasetSummary],
        column_summaries: Optional[Sequence[ColumnProfile]],
        sample_rows: Optional[Sequence[Sequence[str]]] = None,
    ) -> InsightResult:
        if dataset_summary is None or column_summaries is None:
            raise InsightInputError("Missing datasetSummary or columnSummaries")

        rows: List[Sequence[str]] = list(sample_rows or [])[: self.sample_row_limit]
        user_prompt = build_user_prompt(dataset_summary, column_summaries, rows)

        logger.info(
            "Sending insight request (provider=%s, model=%s, prompt=%d chars)...",
            self.provider.name, self.provider.model, len(user_prompt),
        )
        t_start = time.time()
        try:
            content = await asyncio.wait_for(
                self.provider.complete(SYSTEM_PROMPT, user_prompt),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Insight request TIMEOUT after %.2fs", time.time() - t_start)
            raise InsightUpstreamError("Timed out waiting for the model") from exc
        except Exception as exc:
            logger.error("Insight request FAILED after %.2fs: %s: %s",
                         time.time() - t_start, type(exc).__name__, exc)
            raise InsightUpstreamError(_upstream_message(exc)) from exc

        logger.info("Insight reply in %.2fs", time.time() - t_start)
        if not content:
            raise InsightUpstreamError("No content from model")

        return parse_insight_reply(content)


def _upstream_message(exc: Exception) -> str:
    message: Any = getattr(exc, "message", None) or str(exc)
    return str(message) if message else "Internal server error"


def build_insight_service(settings: Settings) -> InsightService:
    """
    Build the insight service for the configured provider.

    Raises MissingCredentialsError when the provider's API key is not set.
    """
    provider_name = settings.LLM_PROVIDER.lower()
    common = dict(
        model=settings.insight_model,
        temperature=settings.INSIGHT_TEMPERATURE,
        max_tokens=settings.INSIGHT_MAX_TOKENS,
        timeout=settings.INSIGHT_TIMEOUT_SECONDS,
    )

    if provider_name == PROVIDER_GROQ:
        if not settings.GROQ_API_KEY:
            raise MissingCredentialsError("GROQ_API_KEY is not set in environment")
        provider: InsightProvider = GroqInsightProvider(
            api_key=settings.GROQ_API_KEY, base_url=settings.GROQ_BASE_URL, **common
        )
    elif provider_name == PROVIDER_ANTHROPIC:
        if not settings.ANTHROPIC_API_KEY:
            raise MissingCredentialsError("ANTHROPIC_API_KEY is not set in environment")
        provider = AnthropicInsightProvider(api_key=settings.ANTHROPIC_API_KEY, **common)
    else:
        raise ValueError(f"Unknown LLM_PROVIDER: {settings.LLM_PROVIDER}")

    logger.info("Insight provider ready: %s (model=%s)", provider.name, provider.model)
    return InsightService(
        provider,
        sample_row_limit=settings.SAMPLE_ROW_LIMIT,
        timeout=settings.INSIGHT_TIMEOUT_SECONDS,
    )
