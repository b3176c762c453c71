"""Write a working set to disk."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from ..settings import AnalysisResult, EncodedImage
from ..utils import slugify, write_json


def export_working_set(
    out_dir: Path,
    analysis: AnalysisResult | None,
    images: Mapping[str, EncodedImage],
) -> dict[str, Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    written: dict[str, Path] = {}
    used: set[str] = set()
    for style, image in images.items():
        path = out_dir / _unique_name(slugify(style), used)
        path.write_bytes(image.data)
        written[style] = path
    if analysis is not None:
        payload = analysis.to_dict()
        payload["images"] = {style: path.name for style, path in written.items()}
        write_json(out_dir / "analysis.json", payload)
    return written


def _unique_name(slug: str, used: set[str]) -> str:
    name = f"{slug}.png"
    suffix = 2
    while name in used:
        name = f"{slug}-{suffix}.png"
        suffix += 1
    used.add(name)
    return name
