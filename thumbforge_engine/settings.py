"""Run settings and data records shared across the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Mapping, Sequence

from PIL import Image


ASPECT_RATIOS = ("16:9", "9:16")
RESOLUTION_TIERS = ("standard", "high")

STYLE_AUTHORITY = "The Authority (Hormozi)"
STYLE_STORYTELLER = "The Storyteller (Beast 2026)"
STYLE_MINIMALIST = "The Minimalist Paradox"
STYLE_TAXONOMY = (STYLE_AUTHORITY, STYLE_STORYTELLER, STYLE_MINIMALIST)

# (long edge, short edge) of the rendered image per resolution tier.
PIXEL_SIZES = {"standard": (1280, 720), "high": (2560, 1440)}


@dataclass(frozen=True)
class GenerationSettings:
    aspect_ratio: str = "16:9"
    resolution_tier: str = "standard"

    def __post_init__(self) -> None:
        if self.aspect_ratio not in ASPECT_RATIOS:
            raise ValueError(f"Unsupported aspect ratio '{self.aspect_ratio}'.")
        if self.resolution_tier not in RESOLUTION_TIERS:
            raise ValueError(f"Unsupported resolution tier '{self.resolution_tier}'.")

    @property
    def is_portrait(self) -> bool:
        return self.aspect_ratio == "9:16"

    @property
    def is_high(self) -> bool:
        return self.resolution_tier == "high"

    def image_size_flag(self) -> str | None:
        return "2K" if self.is_high else None

    def pixel_size(self) -> tuple[int, int]:
        """Width and height of the image this tier and orientation render at."""
        long_edge, short_edge = PIXEL_SIZES[self.resolution_tier]
        if self.is_portrait:
            return short_edge, long_edge
        return long_edge, short_edge


@dataclass(frozen=True)
class Concept:
    style: str
    hook_text: str
    visual_prompt: str
    psychology: str

    def to_dict(self) -> dict[str, str]:
        return {
            "style": self.style,
            "hookText": self.hook_text,
            "visualPrompt": self.visual_prompt,
            "psychology": self.psychology,
        }


@dataclass(frozen=True)
class AnalysisResult:
    promise: str
    mechanism: str
    audience: str
    concepts: tuple[Concept, ...]
    sources: tuple[Mapping[str, Any], ...] = field(default=())

    def styles(self) -> list[str]:
        return [concept.style for concept in self.concepts]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "promise": self.promise,
            "mechanism": self.mechanism,
            "audience": self.audience,
            "concepts": [concept.to_dict() for concept in self.concepts],
        }
        if self.sources:
            payload["sources"] = [dict(source) for source in self.sources]
        return payload


@dataclass(frozen=True)
class EncodedImage:
    """Image bytes plus mime type."""

    data: bytes
    mime_type: str = "image/png"

    def __repr__(self) -> str:
        return f"EncodedImage(mime_type={self.mime_type!r}, bytes={len(self.data)})"

    @classmethod
    def from_path(cls, path: Path, *, max_dim: int = 2048) -> "EncodedImage":
        """Load any Pillow-readable photo and re-encode it as PNG."""
        with Image.open(path) as image:
            rgba = image.convert("RGBA")
            rgba.thumbnail((max_dim, max_dim))
            buf = BytesIO()
            rgba.save(buf, format="PNG")
        return cls(data=buf.getvalue(), mime_type="image/png")


def orientation_label(aspect_ratio: str) -> str:
    return "PORTRAIT 9:16 format" if aspect_ratio == "9:16" else "LANDSCAPE 16:9 format"


def concepts_from_payload(items: Sequence[Mapping[str, Any]]) -> tuple[Concept, ...]:
    return tuple(
        Concept(
            style=str(item["style"]),
            hook_text=str(item["hookText"]),
            visual_prompt=str(item["visualPrompt"]),
            psychology=str(item["psychology"]),
        )
        for item in items
    )
