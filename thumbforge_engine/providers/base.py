"""Backend boundary records and protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Protocol


@dataclass
class StructuredRequest:
    model: str
    system_instruction: str
    contents: str
    response_schema: Mapping[str, Any]
    grounding: bool = True


@dataclass
class StructuredResponse:
    text: str | None
    sources: list[Mapping[str, Any]] = field(default_factory=list)


@dataclass
class ImageCallRequest:
    model: str
    image: bytes
    prompt: str
    aspect_ratio: str
    image_size: str | None = None
    image_mime_type: str = "image/png"


@dataclass
class ResponsePart:
    text: str | None = None
    data: bytes | None = None
    mime_type: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.data)


@dataclass
class ImageCallResponse:
    parts: list[ResponsePart]


class GenerativeBackend(Protocol):
    name: str

    async def generate_structured(self, request: StructuredRequest) -> StructuredResponse:
        ...

    async def generate_image(self, request: ImageCallRequest) -> ImageCallResponse:
        ...


class BackendRegistry:
    def __init__(self, backends: Iterable[GenerativeBackend]) -> None:
        self._backends = {backend.name: backend for backend in backends}

    def get(self, name: str) -> GenerativeBackend | None:
        return self._backends.get(name)

    def list(self) -> list[str]:
        return sorted(self._backends.keys())
