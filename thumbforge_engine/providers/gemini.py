"""Gemini backend."""

from __future__ import annotations

import os
from typing import Any, Mapping, Sequence

from google import genai
from google.genai import types

from ..errors import EntitlementFailure
from ..utils import getenv_flag
from .base import (
    ImageCallRequest,
    ImageCallResponse,
    ResponsePart,
    StructuredRequest,
    StructuredResponse,
)

NO_GROUNDING_ENV = "THUMBFORGE_NO_GROUNDING"


def gemini_api_key() -> str | None:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")


class GeminiBackend:
    name = "gemini"

    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key

    def _client(self) -> genai.Client:
        api_key = self._api_key or gemini_api_key()
        if not api_key:
            raise EntitlementFailure("GEMINI_API_KEY or GOOGLE_API_KEY not set.")
        return genai.Client(api_key=api_key)

    async def generate_structured(self, request: StructuredRequest) -> StructuredResponse:
        client = self._client()
        config = _build_structured_config(request)
        response = await client.aio.models.generate_content(
            model=request.model,
            contents=request.contents,
            config=config,
        )
        return StructuredResponse(
            text=_response_text(response),
            sources=_extract_grounding_sources(response),
        )

    async def generate_image(self, request: ImageCallRequest) -> ImageCallResponse:
        client = self._client()
        config = _build_image_config(request)
        response = await client.aio.models.generate_content(
            model=request.model,
            contents=_build_image_parts(request),
            config=config,
        )
        candidates = getattr(response, "candidates", None) or []
        return ImageCallResponse(parts=_extract_parts(candidates))


def _build_structured_config(request: StructuredRequest) -> types.GenerateContentConfig:
    config_kwargs: dict[str, Any] = {
        "system_instruction": request.system_instruction,
        "response_mime_type": "application/json",
        "response_schema": dict(request.response_schema),
    }
    if request.grounding and not getenv_flag(NO_GROUNDING_ENV, False):
        config_kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]
    return types.GenerateContentConfig(**config_kwargs)


def _build_image_config(request: ImageCallRequest) -> types.GenerateContentConfig:
    image_config: dict[str, Any] = {"aspect_ratio": request.aspect_ratio}
    if request.image_size:
        image_config["image_size"] = request.image_size
    return types.GenerateContentConfig(
        response_modalities=["IMAGE"],
        image_config=types.ImageConfig(**image_config),
    )


def _build_image_parts(request: ImageCallRequest) -> list[types.Part]:
    return [
        types.Part(inline_data=types.Blob(data=request.image, mime_type=request.image_mime_type)),
        types.Part(text=request.prompt),
    ]


def _response_text(response: Any) -> str | None:
    text = getattr(response, "text", None)
    if isinstance(text, str):
        return text
    return None


def _first_candidate(response: Any) -> Any | None:
    candidates = getattr(response, "candidates", None) or []
    return candidates[0] if candidates else None


def _extract_grounding_sources(response: Any) -> list[Mapping[str, Any]]:
    candidate = _first_candidate(response)
    metadata = getattr(candidate, "grounding_metadata", None) if candidate is not None else None
    chunks = getattr(metadata, "grounding_chunks", None) or []
    sources: list[Mapping[str, Any]] = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        if web is None:
            continue
        uri = getattr(web, "uri", None)
        if not uri:
            continue
        sources.append({"title": getattr(web, "title", None) or uri, "uri": uri})
    return sources


def _extract_parts(candidates: Sequence[Any]) -> list[ResponsePart]:
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    raw_parts = getattr(content, "parts", None) or []
    parts: list[ResponsePart] = []
    for part in raw_parts:
        inline_data = getattr(part, "inline_data", None)
        data = getattr(inline_data, "data", None) if inline_data else None
        if isinstance(data, str):
            data = data.encode("latin1")
        parts.append(
            ResponsePart(
                text=getattr(part, "text", None),
                data=bytes(data) if isinstance(data, (bytes, bytearray)) else None,
                mime_type=getattr(inline_data, "mime_type", None) if inline_data else None,
            )
        )
    return parts
