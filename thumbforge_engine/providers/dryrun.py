"""Dry-run backend (offline)."""

from __future__ import annotations

import hashlib
import json
from io import BytesIO

from PIL import Image, ImageDraw, ImageFont

from ..settings import STYLE_TAXONOMY, GenerationSettings
from .base import (
    ImageCallRequest,
    ImageCallResponse,
    ResponsePart,
    StructuredRequest,
    StructuredResponse,
)

_HOOKS = ("I WAS WRONG", "DAY 1 vs 365", "ONLY THIS")


class DryRunBackend:
    name = "dryrun"

    def __init__(self) -> None:
        self._font = None

    async def generate_structured(self, request: StructuredRequest) -> StructuredResponse:
        topic = _topic_from_contents(request.contents)
        payload = {
            "promise": f"Understand {topic} in one sitting.",
            "mechanism": "A single counter-intuitive reframe shown on screen.",
            "audience": "Curious viewers who already follow the topic.",
            "concepts": [
                {
                    "style": style,
                    "hookText": _HOOKS[idx % len(_HOOKS)],
                    "visualPrompt": f"dryrun scene {idx + 1} about {topic}",
                    "psychology": "Curiosity gap between headline and scene.",
                }
                for idx, style in enumerate(STYLE_TAXONOMY)
            ],
        }
        return StructuredResponse(text=json.dumps(payload), sources=[])

    async def generate_image(self, request: ImageCallRequest) -> ImageCallResponse:
        width, height = _resolve_size(request.aspect_ratio, request.image_size)
        image = Image.new("RGB", (width, height), _color_from_prompt(request.prompt))
        draw = ImageDraw.Draw(image)
        font = self._font or ImageFont.load_default()
        draw.text((20, 20), f"dryrun\n{request.prompt.strip()[:60]}", fill=(255, 255, 255), font=font)
        buf = BytesIO()
        image.save(buf, format="PNG")
        return ImageCallResponse(parts=[ResponsePart(data=buf.getvalue(), mime_type="image/png")])


def _resolve_size(aspect_ratio: str, image_size: str | None) -> tuple[int, int]:
    tier = "high" if image_size == "2K" else "standard"
    return GenerationSettings(aspect_ratio, tier).pixel_size()


def _topic_from_contents(contents: str) -> str:
    for line in contents.splitlines():
        if line.startswith("CONTEXT/URL:"):
            topic = line.split(":", 1)[1].strip()
            return topic[:80] or "this video"
    return "this video"


def _color_from_prompt(prompt: str) -> tuple[int, int, int]:
    digest = hashlib.sha256(prompt.encode("utf-8")).digest()
    return digest[0], digest[1], digest[2]
