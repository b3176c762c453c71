"""Concept image synthesis and follow-up edits."""

from __future__ import annotations

from .errors import NoImageProduced, classify_backend_error
from .models.registry import ModelRegistry
from .prompts import build_edit_prompt, build_synthesis_prompt
from .providers.base import GenerativeBackend, ImageCallRequest, ImageCallResponse
from .settings import Concept, EncodedImage, GenerationSettings


def first_image(response: ImageCallResponse) -> EncodedImage:
    for part in response.parts:
        if part.has_image:
            # Wire results are handled as PNG data URLs regardless of the part's declared type.
            return EncodedImage(data=bytes(part.data or b""), mime_type="image/png")
    raise NoImageProduced("Response contained no image part.")


async def _call_image(backend: GenerativeBackend, request: ImageCallRequest) -> EncodedImage:
    try:
        response = await backend.generate_image(request)
    except Exception as exc:
        classified = classify_backend_error(exc)
        if classified is exc:
            raise
        raise classified from exc
    return first_image(response)


class ConceptSynthesizer:
    def __init__(self, backend: GenerativeBackend, models: ModelRegistry | None = None) -> None:
        self.backend = backend
        self.models = models or ModelRegistry()

    def build_request(
        self,
        concept: Concept,
        author_image: EncodedImage,
        settings: GenerationSettings,
    ) -> ImageCallRequest:
        return ImageCallRequest(
            model=self.models.image_model(settings),
            image=author_image.data,
            prompt=build_synthesis_prompt(concept, settings),
            aspect_ratio=settings.aspect_ratio,
            image_size=settings.image_size_flag(),
            image_mime_type=author_image.mime_type,
        )

    async def synthesize(
        self,
        concept: Concept,
        author_image: EncodedImage,
        settings: GenerationSettings,
    ) -> EncodedImage:
        request = self.build_request(concept, author_image, settings)
        return await _call_image(self.backend, request)


class ImageEditor:
    def __init__(self, backend: GenerativeBackend, models: ModelRegistry | None = None) -> None:
        self.backend = backend
        self.models = models or ModelRegistry()

    def build_request(
        self,
        source_image: EncodedImage,
        instruction: str,
        settings: GenerationSettings,
    ) -> ImageCallRequest:
        if not str(instruction or "").strip():
            raise ValueError("instruction must be non-empty.")
        return ImageCallRequest(
            model=self.models.image_model(settings),
            image=source_image.data,
            prompt=build_edit_prompt(instruction, settings),
            aspect_ratio=settings.aspect_ratio,
            image_size=settings.image_size_flag(),
            image_mime_type=source_image.mime_type,
        )

    async def edit(
        self,
        source_image: EncodedImage,
        instruction: str,
        settings: GenerationSettings,
    ) -> EncodedImage:
        request = self.build_request(source_image, instruction, settings)
        return await _call_image(self.backend, request)
