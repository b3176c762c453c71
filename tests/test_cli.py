from __future__ import annotations

import json
from pathlib import Path

import pytest
from PIL import Image

from thumbforge_engine.cli import _build_parser, _handle_run, parse_edit, resolve_style
from thumbforge_engine.settings import STYLE_TAXONOMY
from thumbforge_engine.utils import slugify


def test_parse_edit_splits_style_and_instruction() -> None:
    assert parse_edit("The Authority :: add a chalkboard ") == ("The Authority", "add a chalkboard")
    with pytest.raises(ValueError):
        parse_edit("no separator")
    with pytest.raises(ValueError):
        parse_edit("The Authority::   ")


def test_resolve_style_accepts_unique_prefix() -> None:
    styles = list(STYLE_TAXONOMY)
    assert resolve_style("The Minimalist Paradox", styles) == "The Minimalist Paradox"
    assert resolve_style("the authority", styles) == "The Authority (Hormozi)"
    assert resolve_style("The", styles) is None
    assert resolve_style("Unknown", styles) is None


def test_dryrun_run_writes_thumbnails_and_events(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    photo = tmp_path / "me.png"
    Image.new("RGB", (64, 64), (200, 180, 160)).save(photo)
    out_dir = tmp_path / "out"
    args = _build_parser().parse_args(
        [
            "run",
            "--context",
            "https://video/x",
            "--intent",
            "wealth",
            "--photo",
            str(photo),
            "--aspect-ratio",
            "9:16",
            "--out",
            str(out_dir),
            "--backend",
            "dryrun",
            "--edit",
            "The Storyteller::add motion blur",
        ]
    )

    assert _handle_run(args) == 0

    for style in STYLE_TAXONOMY:
        path = out_dir / f"{slugify(style)}.png"
        assert path.exists()
        with Image.open(path) as image:
            assert image.size == (720, 1280)
    analysis = json.loads((out_dir / "analysis.json").read_text(encoding="utf-8"))
    assert [concept["style"] for concept in analysis["concepts"]] == list(STYLE_TAXONOMY)
    events = [
        json.loads(line)
        for line in (out_dir / "events.jsonl").read_text(encoding="utf-8").splitlines()
    ]
    types = [event["type"] for event in events]
    assert types.count("artifact_created") == 3
    assert "edit_applied" in types
    output = capsys.readouterr().out
    assert "Edited The Storyteller (Beast 2026)" in output
    assert "Wrote 3 of 3 thumbnails" in output


def test_unknown_backend_exits_with_usage_error(tmp_path: Path) -> None:
    photo = tmp_path / "me.png"
    Image.new("RGB", (8, 8)).save(photo)
    args = _build_parser().parse_args(
        ["run", "--context", "x", "--photo", str(photo), "--out", str(tmp_path / "out"), "--backend", "nope"]
    )

    assert _handle_run(args) == 2


def test_missing_photo_exits_with_usage_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    args = _build_parser().parse_args(
        [
            "run",
            "--context",
            "x",
            "--photo",
            str(tmp_path / "absent.png"),
            "--out",
            str(tmp_path / "out"),
            "--backend",
            "dryrun",
        ]
    )

    assert _handle_run(args) == 2
    assert "Cannot read photo" in capsys.readouterr().out
    assert not (tmp_path / "out").exists()


def test_unreadable_photo_exits_with_usage_error(tmp_path: Path) -> None:
    photo = tmp_path / "notes.png"
    photo.write_text("not an image", encoding="utf-8")
    args = _build_parser().parse_args(
        ["run", "--context", "x", "--photo", str(photo), "--out", str(tmp_path / "out"), "--backend", "dryrun"]
    )

    assert _handle_run(args) == 2
