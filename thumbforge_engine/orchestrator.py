"""Generation orchestration: analysis, per-concept synthesis, edits, reset."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Callable

from .analysis import AnalysisRequester
from .credentials import CredentialGate
from .errors import (
    AnalysisFailure,
    ConceptGenerationFailure,
    EditFailure,
    OrchestratorStateError,
)
from .models.registry import ModelRegistry
from .providers.base import GenerativeBackend
from .runs.events import EventWriter
from .settings import AnalysisResult, Concept, EncodedImage, GenerationSettings
from .synthesis import ConceptSynthesizer, ImageEditor

IDLE = "idle"
ANALYZING = "analyzing"
GENERATING = "generating"
READY = "ready"
EDITING = "editing"

ImageCallback = Callable[[str, EncodedImage], None]
FailureCallback = Callable[[Exception], None]


@dataclass
class RunOutcome:
    run_id: str
    status: str
    analysis: AnalysisResult | None = None
    images: dict[str, EncodedImage] = field(default_factory=dict)
    failures: list[ConceptGenerationFailure] = field(default_factory=list)
    error: AnalysisFailure | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == READY


@dataclass
class EditOutcome:
    style: str
    status: str
    image: EncodedImage | None = None
    error: EditFailure | None = None
    warnings: list[str] = field(default_factory=list)


class GenerationOrchestrator:
    """Owns the current analysis and the style -> latest image working set.

    All mutation happens on one task. Every awaited backend call is tagged with
    the run id that issued it; results arriving after a reset (or after a newer
    run started) are dropped instead of merged. Errors raised by collaborators
    (credential gate, publication callbacks) are recorded as warnings and never
    leave the orchestrator.
    """

    def __init__(
        self,
        backend: GenerativeBackend,
        *,
        credentials: CredentialGate | None = None,
        models: ModelRegistry | None = None,
        events: EventWriter | None = None,
        on_image: ImageCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> None:
        models = models or ModelRegistry()
        self.analyzer = AnalysisRequester(backend, models)
        self.synthesizer = ConceptSynthesizer(backend, models)
        self.editor = ImageEditor(backend, models)
        self.credentials = credentials
        self.events = events
        self.on_image = on_image
        self.on_failure = on_failure
        self._state = IDLE
        self._run_id: str | None = None
        self._analysis: AnalysisResult | None = None
        self._images: dict[str, EncodedImage] = {}
        self._settings: GenerationSettings | None = None
        self._warnings: list[str] = []

    @property
    def state(self) -> str:
        return self._state

    @property
    def run_id(self) -> str | None:
        return self._run_id

    @property
    def analysis(self) -> AnalysisResult | None:
        return self._analysis

    @property
    def settings(self) -> GenerationSettings | None:
        return self._settings

    @property
    def images(self) -> dict[str, EncodedImage]:
        return dict(self._images)

    async def start(
        self,
        context: str,
        intent: str | None,
        author_image: EncodedImage,
        settings: GenerationSettings,
    ) -> RunOutcome:
        if self._state != IDLE:
            raise OrchestratorStateError(f"Cannot start a run while {self._state}; reset first.")
        if not str(context or "").strip():
            raise ValueError("context must be non-empty.")

        run_id = uuid.uuid4().hex
        self._run_id = run_id
        self._state = ANALYZING
        self._analysis = None
        self._images = {}
        self._settings = settings
        self._warnings = []
        self._emit(
            "run_started",
            run_id=run_id,
            aspect_ratio=settings.aspect_ratio,
            resolution_tier=settings.resolution_tier,
        )
        self._ensure_credential(run_id, settings)

        try:
            analysis = await self.analyzer.analyze(context, intent)
        except AnalysisFailure as exc:
            if self._is_stale(run_id):
                return self._stale(run_id, "analysis")
            self._state = IDLE
            self._settings = None
            self._emit("analysis_failed", run_id=run_id, error=str(exc))
            return RunOutcome(run_id=run_id, status="failed", error=exc, warnings=list(self._warnings))
        if self._is_stale(run_id):
            return self._stale(run_id, "analysis")

        self._analysis = analysis
        self._state = GENERATING
        self._emit(
            "analysis_ready",
            run_id=run_id,
            concepts=len(analysis.concepts),
            styles=analysis.styles(),
            sources=len(analysis.sources),
        )

        failures: list[ConceptGenerationFailure] = []
        try:
            for index, concept in enumerate(analysis.concepts):
                failure = await self._generate_concept(run_id, index, concept, author_image, settings)
                if self._is_stale(run_id):
                    return self._stale(run_id, "concept", style=concept.style)
                if failure is not None:
                    failures.append(failure)
        finally:
            if not self._is_stale(run_id) and self._state == GENERATING:
                self._state = READY

        self._emit(
            "run_ready",
            run_id=run_id,
            attempted=len(analysis.concepts),
            produced=len(self._images),
            failed=[failure.style for failure in failures],
        )
        return RunOutcome(
            run_id=run_id,
            status=READY,
            analysis=analysis,
            images=dict(self._images),
            failures=failures,
            warnings=list(self._warnings),
        )

    async def _generate_concept(
        self,
        run_id: str,
        index: int,
        concept: Concept,
        author_image: EncodedImage,
        settings: GenerationSettings,
    ) -> ConceptGenerationFailure | None:
        self._emit("concept_started", run_id=run_id, index=index, style=concept.style)
        try:
            image = await self.synthesizer.synthesize(concept, author_image, settings)
        except Exception as exc:
            if self._is_stale(run_id):
                return None
            failure = ConceptGenerationFailure(concept.style, exc)
            self._emit(
                "concept_failed",
                run_id=run_id,
                index=index,
                style=concept.style,
                error=str(exc),
                entitlement=failure.entitlement,
            )
            if failure.entitlement:
                self._request_credential(run_id, concept.style)
            self._notify_failure(run_id, failure)
            return failure
        if self._is_stale(run_id):
            return None
        self._store(run_id, concept.style, image, "artifact_created", index=index)
        return None

    async def edit(self, style: str, instruction: str) -> EditOutcome:
        if self._state != READY:
            raise OrchestratorStateError(f"Edits are only accepted when ready (currently {self._state}).")
        if not str(instruction or "").strip():
            raise ValueError("instruction must be non-empty.")
        current = self._images.get(style)
        if current is None or self._settings is None or self._run_id is None:
            return EditOutcome(style=style, status="skipped")

        run_id = self._run_id
        settings = self._settings
        self._warnings = []
        self._state = EDITING
        try:
            return await self._apply_edit(run_id, style, current, instruction, settings)
        finally:
            if not self._is_stale(run_id) and self._state == EDITING:
                self._state = READY

    async def _apply_edit(
        self,
        run_id: str,
        style: str,
        current: EncodedImage,
        instruction: str,
        settings: GenerationSettings,
    ) -> EditOutcome:
        self._emit("edit_started", run_id=run_id, style=style, instruction=instruction)
        self._ensure_credential(run_id, settings)
        try:
            image = await self.editor.edit(current, instruction, settings)
        except Exception as exc:
            if self._is_stale(run_id):
                self._stale(run_id, "edit", style=style)
                return EditOutcome(style=style, status="stale")
            self._state = READY
            failure = EditFailure(style, instruction, exc)
            self._emit(
                "edit_failed",
                run_id=run_id,
                style=style,
                error=str(exc),
                entitlement=failure.entitlement,
            )
            if failure.entitlement:
                self._request_credential(run_id, style)
            self._notify_failure(run_id, failure)
            return EditOutcome(
                style=style,
                status="failed",
                image=current,
                error=failure,
                warnings=list(self._warnings),
            )
        if self._is_stale(run_id):
            self._stale(run_id, "edit", style=style)
            return EditOutcome(style=style, status="stale")

        self._state = READY
        self._store(run_id, style, image, "edit_applied", instruction=instruction)
        return EditOutcome(style=style, status="applied", image=image, warnings=list(self._warnings))

    def reset(self) -> None:
        previous = self._run_id
        self._run_id = None
        self._state = IDLE
        self._analysis = None
        self._images = {}
        self._settings = None
        self._warnings = []
        self._emit("run_reset", run_id=previous)

    def _store(self, run_id: str, style: str, image: EncodedImage, event_type: str, **payload: Any) -> None:
        self._images[style] = image
        self._emit(event_type, run_id=run_id, style=style, bytes=len(image.data), **payload)
        if self.on_image is not None:
            self._call_collaborator(run_id, "on_image", self.on_image, style, image)

    def _is_stale(self, run_id: str) -> bool:
        return self._run_id != run_id

    def _stale(self, run_id: str, stage: str, style: str | None = None) -> RunOutcome:
        self._emit("stale_result_dropped", run_id=run_id, stage=stage, style=style)
        return RunOutcome(run_id=run_id, status="stale")

    def _ensure_credential(self, run_id: str, settings: GenerationSettings) -> None:
        if self.credentials is None or not settings.is_high:
            return
        if not self._call_collaborator(run_id, "has_credential", self.credentials.has_credential):
            self._emit("credential_requested", run_id=run_id, reason="missing")
            self._call_collaborator(run_id, "request_credential", self.credentials.request_credential)

    def _request_credential(self, run_id: str, style: str) -> None:
        self._emit("credential_requested", run_id=run_id, reason="entitlement", style=style)
        if self.credentials is not None:
            self._call_collaborator(run_id, "request_credential", self.credentials.request_credential)

    def _notify_failure(self, run_id: str, failure: Exception) -> None:
        if self.on_failure is not None:
            self._call_collaborator(run_id, "on_failure", self.on_failure, failure)

    def _call_collaborator(self, run_id: str, name: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return func(*args)
        except Exception as exc:
            warning = f"{name} raised {type(exc).__name__}: {exc}"
            self._warnings.append(warning)
            self._emit("collaborator_failed", run_id=run_id, collaborator=name, error=warning)
            return None

    def _emit(self, event_type: str, **payload: Any) -> None:
        if self.events is not None:
            self.events.emit(event_type, **payload)
