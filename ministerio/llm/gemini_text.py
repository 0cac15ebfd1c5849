"""Gemini ``generate_content`` client with search/maps grounding.

Requests go through the google-genai SDK; the three app operations
(presentation ideas, preaching locations, chat) are thin wrappers that pick
the model, system instruction and grounding tool.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ministerio.config.model import GeminiConfig
from ministerio.core.clock import local_today, monotonic_ms
from ministerio.core.errors import AIServiceError
from ministerio.llm import prompts


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GroundingSource:
    """One grounding chunk (a web page or a Maps place)."""

    kind: str  # "web" | "maps"
    uri: str | None
    title: str | None


@dataclass(frozen=True, slots=True)
class GenerationResult:
    text: str
    grounding: list[GroundingSource] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class LatLng:
    latitude: float
    longitude: float


SEARCH_TOOL = types.Tool(google_search=types.GoogleSearch())
MAPS_TOOL = types.Tool(google_maps=types.GoogleMaps())


def _parse_grounding(candidate: types.Candidate) -> list[GroundingSource]:
    meta = candidate.grounding_metadata
    if meta is None:
        return []
    out: list[GroundingSource] = []
    for chunk in meta.grounding_chunks or []:
        for kind in ("web", "maps"):
            src = getattr(chunk, kind, None)
            if src is not None:
                out.append(GroundingSource(kind=kind, uri=src.uri, title=src.title))
    return out


def parse_generate_response(response: types.GenerateContentResponse) -> GenerationResult:
    if not response.candidates:
        raise AIServiceError(f"no candidates in response (prompt_feedback={response.prompt_feedback!r})")

    candidate = response.candidates[0]
    parts = candidate.content.parts if candidate.content is not None else None
    # Thought-summary parts are not part of the answer.
    text = "".join(p.text or "" for p in parts or [] if not p.thought)
    return GenerationResult(text=text, grounding=_parse_grounding(candidate))


class GeminiTextClient:
    def __init__(self, cfg: GeminiConfig, *, client: genai.Client | None = None):
        self._cfg = cfg
        self._client = client or genai.Client(
            api_key=cfg.require_api_key(),
            http_options=types.HttpOptions(
                base_url=cfg.base_url,
                api_version=cfg.api_version,
                timeout=int(cfg.timeout_s * 1000),
            ),
        )

    def generate(
        self,
        *,
        model: str,
        contents: Sequence[Mapping[str, Any]],
        system_instruction: str | None = None,
        tools: Sequence[types.Tool] | None = None,
        tool_config: types.ToolConfig | None = None,
    ) -> GenerationResult:
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            tools=list(tools) if tools else None,
            tool_config=tool_config,
        )

        started = monotonic_ms()
        try:
            response = self._client.models.generate_content(model=model, contents=list(contents), config=config)
        except genai_errors.APIError as e:
            logger.error("gemini_error_response", extra={"model": model, "status": e.code, "error": e.message})
            raise AIServiceError(e.message or str(e), status_code=e.code) from e
        except httpx.HTTPError as e:
            logger.error("gemini_request_failed", extra={"model": model, "error": str(e)})
            raise AIServiceError(f"network error: {e}") from e

        result = parse_generate_response(response)
        logger.info(
            "gemini_generate_done",
            extra={
                "model": model,
                "latency_ms": monotonic_ms() - started,
                "text_len": len(result.text),
                "grounding": len(result.grounding),
            },
        )
        return result

    # --- app operations ------------------------------------------------------

    def generate_presentations(self, topic: str) -> GenerationResult:
        """Three short presentations on ``topic``, grounded with Google Search."""

        return self.generate(
            model=self._cfg.presentations_model,
            contents=[{"role": "user", "parts": [{"text": prompts.presentations_prompt(topic)}]}],
            system_instruction=prompts.SYSTEM_INSTRUCTION_BASE,
            tools=[SEARCH_TOOL],
        )

    def find_preaching_locations(self, query: str, location: LatLng) -> GenerationResult:
        """Public places near ``location``, grounded with Google Maps."""

        return self.generate(
            model=self._cfg.territory_model,
            contents=[{"role": "user", "parts": [{"text": prompts.territory_prompt(query)}]}],
            system_instruction=prompts.TERRITORY_INSTRUCTION,
            tools=[MAPS_TOOL],
            tool_config=types.ToolConfig(
                retrieval_config=types.RetrievalConfig(
                    lat_lng=types.LatLng(latitude=location.latitude, longitude=location.longitude),
                )
            ),
        )

    def send_chat_message(
        self,
        history: Sequence[Mapping[str, Any]],
        message: str,
        *,
        today: date | None = None,
    ) -> GenerationResult:
        """One chat turn. ``history`` is in wire form (role + parts)."""

        contents = [*history, {"role": "user", "parts": [{"text": message}]}]
        return self.generate(
            model=self._cfg.chat_model,
            contents=contents,
            system_instruction=prompts.chat_system_instruction(today or local_today()),
            tools=[SEARCH_TOOL],
        )
