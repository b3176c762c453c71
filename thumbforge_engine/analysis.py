"""Structured creative analysis of a video context.

One request per run: the strategist ruleset as system instruction, the caller's
context and intent as contents, and a strict JSON schema for the reply. The
reply must contain every top-level field and every concept field; anything else
is rejected whole, never returned partially.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from .errors import AnalysisFailure, MalformedAnalysisResponse
from .models.registry import ModelRegistry
from .prompts import (
    ANALYSIS_FIELDS,
    CONCEPT_FIELDS,
    STRATEGIST_RULESET,
    analysis_schema,
    build_analysis_contents,
)
from .providers.base import GenerativeBackend, StructuredRequest
from .settings import AnalysisResult, concepts_from_payload


class AnalysisRequester:
    def __init__(
        self,
        backend: GenerativeBackend,
        models: ModelRegistry | None = None,
        grounding: bool = True,
    ) -> None:
        self.backend = backend
        self.models = models or ModelRegistry()
        self.grounding = grounding

    def build_request(self, context: str, intent: str | None = None) -> StructuredRequest:
        if not str(context or "").strip():
            raise ValueError("context must be non-empty.")
        return StructuredRequest(
            model=self.models.analysis_model(),
            system_instruction=STRATEGIST_RULESET,
            contents=build_analysis_contents(context, intent),
            response_schema=analysis_schema(),
            grounding=self.grounding,
        )

    async def analyze(self, context: str, intent: str | None = None) -> AnalysisResult:
        request = self.build_request(context, intent)
        try:
            response = await self.backend.generate_structured(request)
        except AnalysisFailure:
            raise
        except Exception as exc:
            raise AnalysisFailure(f"Analysis request failed: {exc}") from exc
        result = parse_analysis(response.text)
        if response.sources:
            result = AnalysisResult(
                promise=result.promise,
                mechanism=result.mechanism,
                audience=result.audience,
                concepts=result.concepts,
                sources=tuple(dict(source) for source in response.sources),
            )
        return result


def parse_analysis(text: str | None) -> AnalysisResult:
    if not text or not text.strip():
        raise MalformedAnalysisResponse("Analysis response was empty.")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedAnalysisResponse(f"Analysis response is not JSON: {exc}") from exc
    _validate_payload(payload)
    return AnalysisResult(
        promise=payload["promise"],
        mechanism=payload["mechanism"],
        audience=payload["audience"],
        concepts=concepts_from_payload(payload["concepts"]),
    )


def _validate_payload(payload: Any) -> None:
    if not isinstance(payload, Mapping):
        raise MalformedAnalysisResponse("Analysis response must be a JSON object.")
    missing = [name for name in ANALYSIS_FIELDS if name not in payload]
    if missing:
        raise MalformedAnalysisResponse(f"Analysis response missing fields: {', '.join(missing)}.")
    for name in ANALYSIS_FIELDS[:-1]:
        if not isinstance(payload[name], str):
            raise MalformedAnalysisResponse(f"Analysis field '{name}' must be a string.")
    concepts = payload["concepts"]
    if not isinstance(concepts, list):
        raise MalformedAnalysisResponse("Analysis field 'concepts' must be an array.")
    for idx, item in enumerate(concepts):
        if not isinstance(item, Mapping):
            raise MalformedAnalysisResponse(f"Concept {idx} must be an object.")
        for name in CONCEPT_FIELDS:
            if not isinstance(item.get(name), str):
                raise MalformedAnalysisResponse(f"Concept {idx} missing string field '{name}'.")
