"""Prompt text for the analysis, synthesis, and edit calls."""

from __future__ import annotations

from typing import Any

from .settings import Concept, GenerationSettings, orientation_label


STRATEGIST_RULESET = """
ROLE: You are the most advanced Design Strategist and Click Psychology Expert of the year 2026.
MISSION: Analyze video context, URLs, and specific user intent to generate 3 avant-garde thumbnail concepts.

2026 DESIGN RULES:
- Facial Expressions: NO forced open mouths. Use micro-expressions (raised eyebrow, intense gaze, subtle "I know something you don't" smile).
- Lighting: Global Illumination. Matches the author's face lighting to the scene source.
- Depth of Field: Cinematic f/1.8 blur for background separation.
- Colors: Avoid artificial neon. Use organic gradients, real textures, and lighting-based contrast.
- Typography: Max 3 words. No "How to". Use brutal statements or specific numbers.

TEMPLATES:
1. "The Authority" (Hormozi Style): Raw environment, Chiaroscuro lighting, handwriting/simple charts, maximum authenticity.
2. "The Storyteller" (Beast 2026 Style): Action frozen in time (Predictive Hook), vibrant but natural colors, author interacting with the focal point.
3. "The Minimalist Paradox" (Ultra-Modern): Single ultra-detailed central object, clean background, visual contradiction.
""".strip()

CONCEPT_FIELDS = ("style", "hookText", "visualPrompt", "psychology")
ANALYSIS_FIELDS = ("promise", "mechanism", "audience", "concepts")

# Artifacts the synthesis prompt always forbids.
FORBIDDEN_ARTIFACTS = (
    "NO clickbait red arrows",
    "NO over-saturated faces",
    "NO distorted expressions",
    "NO forced open-mouth reactions",
)


def analysis_schema() -> dict[str, Any]:
    concept = {
        "type": "OBJECT",
        "properties": {name: {"type": "STRING"} for name in CONCEPT_FIELDS},
        "required": list(CONCEPT_FIELDS),
    }
    return {
        "type": "OBJECT",
        "properties": {
            "promise": {"type": "STRING"},
            "mechanism": {"type": "STRING"},
            "audience": {"type": "STRING"},
            "concepts": {"type": "ARRAY", "items": concept},
        },
        "required": list(ANALYSIS_FIELDS),
    }


def build_analysis_contents(context: str, intent: str | None = None) -> str:
    lines = [f"CONTEXT/URL: {context.strip()}"]
    if intent and intent.strip():
        lines.append(f"USER SPECIFIC INTENT: {intent.strip()}")
    combined = "\n".join(lines)
    return (
        "Analyze this context and the specific user intent. Extract the Supreme Promise, "
        "Unique Mechanism, and Target Audience. Then generate 3 thumbnail concepts that align "
        "with the intent while following 2026 Viral Engine rules:\n"
        f"{combined}"
    )


def _pixel_area(settings: GenerationSettings) -> str:
    width, height = settings.pixel_size()
    return f"{width}x{height}"


def build_synthesis_prompt(concept: Concept, settings: GenerationSettings) -> str:
    orientation = orientation_label(settings.aspect_ratio)
    lines = [
        f"THIS IS A {orientation} IMAGE.",
        "[Author Photo Reference] is the person to be integrated.",
        "Action: Seamlessly blend this author into the scene using 2026 Relighting AI principles.",
        f"Orientation: Strictly use a {orientation} composition. Crop or expand the background "
        f"to fill the {settings.aspect_ratio} area ({_pixel_area(settings)} pixels) perfectly.",
        "Skin tones and shadows on the face must match the environment perfectly.",
        f"Scene Description: {concept.visual_prompt}",
        "Style: Photorealistic, 8k resolution, shot on Sony A7R IV, 35mm lens, f/1.8 bokeh.",
        f'Text Integration: The text "{concept.hook_text}" should be rendered as a physical 3D element in the scene.',
        ", ".join(FORBIDDEN_ARTIFACTS) + ".",
    ]
    return "\n".join(lines)


def build_edit_prompt(instruction: str, settings: GenerationSettings) -> str:
    orientation = orientation_label(settings.aspect_ratio)
    # The orientation clause follows the user text so the instruction cannot override it.
    return (
        f"Edit this image according to this instruction: {instruction.strip()}. "
        f"IMPORTANT: Maintain the {orientation} orientation strictly. "
        f"Do not change the aspect ratio; the output must stay {settings.aspect_ratio}. "
        "Maintain the 2026 Viral Engine aesthetic established in the source image."
    )
