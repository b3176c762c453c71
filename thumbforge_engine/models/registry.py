"""Model registry for Thumbforge."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from ..settings import GenerationSettings


@dataclass(frozen=True)
class ModelSpec:
    name: str
    provider: str
    capabilities: tuple[str, ...]
    tier: str | None = None

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities


_DEFAULT_MODELS: dict[str, ModelSpec] = {
    "gemini-3-pro-preview": ModelSpec(
        name="gemini-3-pro-preview",
        provider="gemini",
        capabilities=("analysis",),
    ),
    "gemini-2.5-flash-image": ModelSpec(
        name="gemini-2.5-flash-image",
        provider="gemini",
        capabilities=("image", "edit"),
        tier="standard",
    ),
    "gemini-3-pro-image-preview": ModelSpec(
        name="gemini-3-pro-image-preview",
        provider="gemini",
        capabilities=("image", "edit"),
        tier="high",
    ),
}

ANALYSIS_MODEL_ENV = "THUMBFORGE_ANALYSIS_MODEL"
IMAGE_MODEL_ENV = "THUMBFORGE_IMAGE_MODEL"
IMAGE_MODEL_HIGH_ENV = "THUMBFORGE_IMAGE_MODEL_HIGH"


class ModelRegistry:
    def __init__(self, models: Mapping[str, ModelSpec] | None = None) -> None:
        self._models = dict(models) if models else dict(_DEFAULT_MODELS)

    def by_capability(self, capability: str, tier: str | None = None) -> list[ModelSpec]:
        return [
            model
            for model in self._models.values()
            if model.supports(capability) and (tier is None or model.tier == tier)
        ]

    def analysis_model(self) -> str:
        override = os.getenv(ANALYSIS_MODEL_ENV)
        if override:
            return override
        return self._first("analysis", None)

    def image_model(self, settings: GenerationSettings) -> str:
        """Pick the image variant for a run; high tier gets the higher-capability model."""
        env_key = IMAGE_MODEL_HIGH_ENV if settings.is_high else IMAGE_MODEL_ENV
        override = os.getenv(env_key)
        if override:
            return override
        return self._first("image", settings.resolution_tier)

    def _first(self, capability: str, tier: str | None) -> str:
        candidates = self.by_capability(capability, tier)
        if not candidates:
            label = f"{capability}/{tier}" if tier else capability
            raise RuntimeError(f"No models available for capability '{label}'.")
        return candidates[0].name
