from __future__ import annotations

from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from thumbforge_engine.settings import (
    AnalysisResult,
    Concept,
    EncodedImage,
    GenerationSettings,
    orientation_label,
)


def test_settings_reject_unknown_aspect_ratio_and_tier() -> None:
    with pytest.raises(ValueError, match="aspect ratio"):
        GenerationSettings(aspect_ratio="4:3")
    with pytest.raises(ValueError, match="resolution tier"):
        GenerationSettings(resolution_tier="4K")


def test_settings_high_tier_sets_image_size_flag() -> None:
    assert GenerationSettings("16:9", "standard").image_size_flag() is None
    assert GenerationSettings("9:16", "high").image_size_flag() == "2K"
    assert GenerationSettings("9:16", "high").is_portrait


def test_orientation_label() -> None:
    assert orientation_label("9:16") == "PORTRAIT 9:16 format"
    assert orientation_label("16:9") == "LANDSCAPE 16:9 format"


def test_pixel_size_follows_tier_and_orientation() -> None:
    assert GenerationSettings("16:9", "standard").pixel_size() == (1280, 720)
    assert GenerationSettings("9:16", "standard").pixel_size() == (720, 1280)
    assert GenerationSettings("16:9", "high").pixel_size() == (2560, 1440)
    assert GenerationSettings("9:16", "high").pixel_size() == (1440, 2560)


def test_encoded_image_from_path_reencodes_to_png(tmp_path: Path) -> None:
    photo = tmp_path / "author.jpg"
    Image.new("RGB", (80, 40), (10, 20, 30)).save(photo, format="JPEG")

    image = EncodedImage.from_path(photo)

    assert image.mime_type == "image/png"
    assert image.data.startswith(b"\x89PNG")
    with Image.open(BytesIO(image.data)) as decoded:
        assert decoded.format == "PNG"
        assert decoded.size == (80, 40)


def test_analysis_result_to_dict_uses_wire_field_names() -> None:
    concept = Concept(style="The Authority", hook_text="$0 TO 1M", visual_prompt="desk", psychology="status")
    result = AnalysisResult(promise="p", mechanism="m", audience="a", concepts=(concept,))

    payload = result.to_dict()

    assert payload["concepts"] == [
        {"style": "The Authority", "hookText": "$0 TO 1M", "visualPrompt": "desk", "psychology": "status"}
    ]
    assert "sources" not in payload
    assert result.styles() == ["The Authority"]
