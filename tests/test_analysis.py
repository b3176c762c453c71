from __future__ import annotations

import asyncio
import json

import pytest

from thumbforge_engine.analysis import AnalysisRequester, parse_analysis
from thumbforge_engine.errors import AnalysisFailure, MalformedAnalysisResponse
from thumbforge_engine.prompts import STRATEGIST_RULESET
from thumbforge_engine.providers.base import StructuredRequest, StructuredResponse


def _payload(count: int = 3) -> dict[str, object]:
    return {
        "promise": "Retire early",
        "mechanism": "Index funds",
        "audience": "Millennials",
        "concepts": [
            {
                "style": f"Style {idx}",
                "hookText": f"HOOK {idx}",
                "visualPrompt": f"scene {idx}",
                "psychology": f"why {idx}",
            }
            for idx in range(count)
        ],
    }


class _FakeBackend:
    name = "fake"

    def __init__(self, response: StructuredResponse | Exception) -> None:
        self.response = response
        self.requests: list[StructuredRequest] = []

    async def generate_structured(self, request: StructuredRequest) -> StructuredResponse:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    async def generate_image(self, request):  # pragma: no cover - unused here
        raise AssertionError("no image calls expected")


def test_analyze_builds_constrained_request_and_parses_result() -> None:
    backend = _FakeBackend(StructuredResponse(text=json.dumps(_payload())))
    requester = AnalysisRequester(backend)

    result = asyncio.run(requester.analyze("https://video/x", "wealth"))

    assert [concept.style for concept in result.concepts] == ["Style 0", "Style 1", "Style 2"]
    assert result.concepts[1].hook_text == "HOOK 1"
    assert result.sources == ()
    request = backend.requests[0]
    assert request.model == "gemini-3-pro-preview"
    assert request.system_instruction == STRATEGIST_RULESET
    assert "USER SPECIFIC INTENT: wealth" in request.contents
    assert request.response_schema["required"] == ["promise", "mechanism", "audience", "concepts"]
    assert request.grounding is True


def test_analyze_attaches_grounding_sources_when_present() -> None:
    sources = [{"title": "Video", "uri": "https://video/x"}]
    backend = _FakeBackend(StructuredResponse(text=json.dumps(_payload()), sources=sources))

    result = asyncio.run(AnalysisRequester(backend).analyze("https://video/x"))

    assert result.sources == ({"title": "Video", "uri": "https://video/x"},)
    assert result.to_dict()["sources"] == sources


def test_analyze_accepts_concept_lists_of_other_lengths() -> None:
    backend = _FakeBackend(StructuredResponse(text=json.dumps(_payload(count=5))))

    result = asyncio.run(AnalysisRequester(backend).analyze("topic"))

    assert len(result.concepts) == 5


def test_analyze_wraps_backend_errors() -> None:
    backend = _FakeBackend(RuntimeError("503 UNAVAILABLE"))

    with pytest.raises(AnalysisFailure, match="503 UNAVAILABLE") as excinfo:
        asyncio.run(AnalysisRequester(backend).analyze("topic"))
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_analyze_requires_context() -> None:
    backend = _FakeBackend(StructuredResponse(text=json.dumps(_payload())))

    with pytest.raises(ValueError):
        asyncio.run(AnalysisRequester(backend).analyze("   "))
    assert backend.requests == []


@pytest.mark.parametrize("text", [None, "", "not json", "[]"])
def test_parse_analysis_rejects_unusable_payloads(text: str | None) -> None:
    with pytest.raises(MalformedAnalysisResponse):
        parse_analysis(text)


def test_parse_analysis_rejects_missing_top_level_field() -> None:
    payload = _payload()
    del payload["audience"]

    with pytest.raises(MalformedAnalysisResponse, match="audience"):
        parse_analysis(json.dumps(payload))


def test_parse_analysis_rejects_concept_missing_field() -> None:
    payload = _payload()
    del payload["concepts"][2]["visualPrompt"]  # type: ignore[index]

    with pytest.raises(AnalysisFailure, match="visualPrompt"):
        parse_analysis(json.dumps(payload))
