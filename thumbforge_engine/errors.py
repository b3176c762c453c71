"""Error taxonomy for analysis, synthesis, and edit calls."""

from __future__ import annotations


ENTITLEMENT_MARKERS = (
    "Requested entity was not found",
    "PERMISSION_DENIED",
    "API key not valid",
)


class ThumbforgeError(RuntimeError):
    pass


class AnalysisFailure(ThumbforgeError):
    """The analysis call failed or its payload was unusable. Fatal to the run."""


class MalformedAnalysisResponse(AnalysisFailure):
    pass


class NoImageProduced(ThumbforgeError):
    pass


class EntitlementFailure(ThumbforgeError):
    """The backend refused the call for credential or access-tier reasons."""


class OrchestratorStateError(ThumbforgeError):
    pass


class ConceptGenerationFailure(ThumbforgeError):
    def __init__(self, style: str, cause: BaseException) -> None:
        super().__init__(f"Image generation failed for '{style}': {cause}")
        self.style = style
        self.cause = cause

    @property
    def entitlement(self) -> bool:
        return isinstance(self.cause, EntitlementFailure)


class EditFailure(ThumbforgeError):
    def __init__(self, style: str, instruction: str, cause: BaseException) -> None:
        super().__init__(f"Edit failed for '{style}': {cause}")
        self.style = style
        self.instruction = instruction
        self.cause = cause

    @property
    def entitlement(self) -> bool:
        return isinstance(self.cause, EntitlementFailure)


def is_entitlement_message(message: str | None) -> bool:
    text = str(message or "")
    return any(marker in text for marker in ENTITLEMENT_MARKERS)


def classify_backend_error(exc: Exception) -> Exception:
    """Map a raw backend exception onto EntitlementFailure when its message says so."""
    if isinstance(exc, (EntitlementFailure, NoImageProduced)):
        return exc
    if is_entitlement_message(str(exc)):
        failure = EntitlementFailure(str(exc))
        failure.__cause__ = exc
        return failure
    return exc
