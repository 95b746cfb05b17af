"""Text generator dispatch tests."""

from __future__ import annotations

import json

import httpx
import pytest

from parlaybuilder.agents import llm_client
from parlaybuilder.errors import GenerationError


def _gemini(handler) -> llm_client.GeminiClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return llm_client.GeminiClient(api_key="g-key", model="gemini-test", http_client=http)


def test_openai_path_sends_system_and_user_messages(monkeypatch) -> None:
    captured: list = []

    def fake_completion(messages, temperature=None):
        captured.append(messages)
        return "**🎯 1-Leg Parlay: X**"

    monkeypatch.setattr(llm_client, "chat_completion", fake_completion)
    content = llm_client.LLMTextGenerator().generate("build it", "openai")
    assert content.startswith("**🎯")
    assert [m["role"] for m in captured[0]] == ["system", "user"]
    assert captured[0][1]["content"] == "build it"


def test_empty_output_is_a_generation_error(monkeypatch) -> None:
    monkeypatch.setattr(llm_client, "chat_completion", lambda messages, temperature=None: "   ")
    with pytest.raises(GenerationError):
        llm_client.LLMTextGenerator().generate("prompt", "openai")


def test_unknown_model_rejected() -> None:
    with pytest.raises(GenerationError):
        llm_client.LLMTextGenerator().generate("prompt", "claude")


def test_gemini_request_shape_and_text() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "parlay text"}]}}]})

    generator = llm_client.LLMTextGenerator(gemini=_gemini(handler))
    assert generator.generate("prompt", "gemini") == "parlay text"
    request = seen[0]
    assert request.url.path.endswith("/models/gemini-test:generateContent")
    assert request.url.params["key"] == "g-key"
    body = json.loads(request.content)
    assert body["contents"][0]["parts"][0]["text"] == "prompt"
    assert "maxOutputTokens" in body["generationConfig"]


def test_gemini_http_error_wrapped() -> None:
    generator = llm_client.LLMTextGenerator(gemini=_gemini(lambda request: httpx.Response(429, json={})))
    with pytest.raises(GenerationError, match="429"):
        generator.generate("prompt", "gemini")


def test_gemini_non_json_body_wrapped() -> None:
    generator = llm_client.LLMTextGenerator(gemini=_gemini(lambda request: httpx.Response(200, text="<html>")))
    with pytest.raises(GenerationError, match="non-JSON"):
        generator.generate("prompt", "gemini")


def test_gemini_missing_candidates_is_empty() -> None:
    generator = llm_client.LLMTextGenerator(gemini=_gemini(lambda request: httpx.Response(200, json={})))
    with pytest.raises(GenerationError, match="empty"):
        generator.generate("prompt", "gemini")


def test_gemini_requires_key(monkeypatch) -> None:
    monkeypatch.setattr(llm_client.settings, "gemini_api_key", "")
    with pytest.raises(GenerationError):
        llm_client.GeminiClient()
