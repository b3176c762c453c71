"""Backend registry."""

from __future__ import annotations

from .base import BackendRegistry
from .dryrun import DryRunBackend
from .gemini import GeminiBackend


def default_registry() -> BackendRegistry:
    return BackendRegistry(
        [
            DryRunBackend(),
            GeminiBackend(),
        ]
    )
