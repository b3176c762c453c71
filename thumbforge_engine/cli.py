"""Thumbforge CLI entrypoints."""

from __future__ import annotations

import argparse
import asyncio
import uuid
from pathlib import Path

from .credentials import CredentialGate, EnvCredentialGate, StaticCredentialGate
from .errors import ThumbforgeError
from .orchestrator import GenerationOrchestrator, RunOutcome
from .providers import default_registry
from .runs.events import EventWriter
from .runs.export import export_working_set
from .settings import ASPECT_RATIOS, RESOLUTION_TIERS, EncodedImage, GenerationSettings
from .utils import load_dotenv

EDIT_SEPARATOR = "::"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="thumbforge", description="Thumbnail concept generator")
    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Analyze a video context and render one thumbnail per concept")
    run.add_argument("--context", required=True, help="Video URL or topic")
    run.add_argument("--intent", default="", help="What the thumbnail should convey")
    run.add_argument("--photo", required=True, help="Path to the author reference photo")
    run.add_argument("--aspect-ratio", dest="aspect_ratio", choices=ASPECT_RATIOS, default="16:9")
    run.add_argument("--resolution", choices=RESOLUTION_TIERS, default="standard")
    run.add_argument("--out", required=True, help="Output directory")
    run.add_argument("--events", help="Path to events.jsonl")
    run.add_argument("--backend", default="gemini")
    run.add_argument(
        "--edit",
        action="append",
        default=[],
        metavar="STYLE::INSTRUCTION",
        help="Follow-up edit applied once all concepts are generated (repeatable)",
    )
    return parser


def parse_edit(value: str) -> tuple[str, str]:
    if EDIT_SEPARATOR not in value:
        raise ValueError(f"Edit must look like 'STYLE{EDIT_SEPARATOR}instruction': {value!r}")
    style, instruction = value.split(EDIT_SEPARATOR, 1)
    style = style.strip()
    instruction = instruction.strip()
    if not style or not instruction:
        raise ValueError(f"Edit must name a style and an instruction: {value!r}")
    return style, instruction


def resolve_style(requested: str, styles: list[str]) -> str | None:
    if requested in styles:
        return requested
    lowered = requested.lower()
    matches = [style for style in styles if style.lower().startswith(lowered)]
    if len(matches) == 1:
        return matches[0]
    return None


def _credentials_for(backend_name: str) -> CredentialGate:
    if backend_name == "dryrun":
        return StaticCredentialGate()
    return EnvCredentialGate()


def _print_outcome(outcome: RunOutcome) -> None:
    analysis = outcome.analysis
    if analysis is None:
        return
    print(f"Promise: {analysis.promise}")
    print(f"Mechanism: {analysis.mechanism}")
    print(f"Audience: {analysis.audience}")
    for concept in analysis.concepts:
        marker = "ok" if concept.style in outcome.images else "pending"
        print(f"- [{marker}] {concept.style}: \"{concept.hook_text}\"")
        print(f"    {concept.psychology}")
    for source in analysis.sources:
        print(f"Source: {source.get('title')} <{source.get('uri')}>")
    for warning in outcome.warnings:
        print(f"Warning: {warning}")


async def _run_session(args: argparse.Namespace) -> int:
    registry = default_registry()
    backend = registry.get(args.backend)
    if backend is None:
        print(f"Unknown backend '{args.backend}' (choose from: {', '.join(registry.list())}).")
        return 2
    try:
        edits = [parse_edit(value) for value in args.edit]
        settings = GenerationSettings(aspect_ratio=args.aspect_ratio, resolution_tier=args.resolution)
    except ValueError as exc:
        print(str(exc))
        return 2
    try:
        author_image = EncodedImage.from_path(Path(args.photo))
    except OSError as exc:
        print(f"Cannot read photo '{args.photo}': {exc}")
        return 2

    run_dir = Path(args.out)
    events_path = Path(args.events) if args.events else run_dir / "events.jsonl"
    events = EventWriter(events_path, uuid.uuid4().hex)

    def _on_image(style: str, image: EncodedImage) -> None:
        print(f"Rendered {style} ({len(image.data)} bytes)")

    def _on_failure(failure: Exception) -> None:
        print(f"Failed: {failure}")

    orchestrator = GenerationOrchestrator(
        backend,
        credentials=_credentials_for(args.backend),
        events=events,
        on_image=_on_image,
        on_failure=_on_failure,
    )
    print(f"Analyzing context ({settings.aspect_ratio}, {settings.resolution_tier})")
    outcome = await orchestrator.start(args.context, args.intent, author_image, settings)
    if outcome.error is not None:
        print(f"Analysis failed: {outcome.error}. Please try again.")
        return 1
    _print_outcome(outcome)

    styles = outcome.analysis.styles() if outcome.analysis else []
    for requested, instruction in edits:
        style = resolve_style(requested, styles)
        if style is None:
            print(f"Skipping edit: no concept matches '{requested}'.")
            continue
        result = await orchestrator.edit(style, instruction)
        if result.status == "applied":
            print(f"Edited {style}")
        elif result.status == "skipped":
            print(f"Skipping edit: {style} has no image yet.")

    written = export_working_set(run_dir, orchestrator.analysis, orchestrator.images)
    print(f"Wrote {len(written)} of {len(styles)} thumbnails to {run_dir}")
    return 0


def _handle_run(args: argparse.Namespace) -> int:
    try:
        return asyncio.run(_run_session(args))
    except ThumbforgeError as exc:
        print(f"Run failed: {exc}")
        return 1


def main() -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()
    if args.command == "run":
        raise SystemExit(_handle_run(args))
    parser.print_help()
    raise SystemExit(1)


if __name__ == "__main__":
    main()
