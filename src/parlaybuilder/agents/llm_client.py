"""Text generation through OpenAI Chat Completions or the Gemini REST API."""

from __future__ import annotations

import logging
from typing import Dict, List, Protocol

import httpx
from openai import OpenAI, OpenAIError
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from parlaybuilder.agents.prompt_builder import SYSTEM_PROMPT
from parlaybuilder.config import get_settings
from parlaybuilder.errors import GenerationError

logger = logging.getLogger(__name__)

settings = get_settings()
_openai_client: OpenAI | None = None

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


def _retry_log(retry_state: RetryCallState) -> None:  # pragma: no cover - logging helper
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Gemini retry attempt %s due to %s", retry_state.attempt_number, exception)


class TextGenerator(Protocol):
    def generate(self, prompt: str, model_id: str) -> str: ...


def _client() -> OpenAI:
    global _openai_client
    if _openai_client is None:
        if not settings.openai_api_key:
            raise GenerationError("OPENAI_API_KEY is not configured.")
        _openai_client = OpenAI(api_key=settings.openai_api_key, timeout=settings.http_timeout_s)
    return _openai_client


def chat_completion(messages: List[Dict[str, str]], temperature: float | None = None) -> str:
    response = _client().chat.completions.create(
        model=settings.openai_model,
        temperature=settings.llm_temperature if temperature is None else temperature,
        max_tokens=settings.llm_max_tokens,
        messages=messages,
    )
    return response.choices[0].message.content or ""


class GeminiClient:
    """Minimal ``generateContent`` wrapper."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key or settings.gemini_api_key
        if not self.api_key:
            raise GenerationError("GEMINI_API_KEY is not configured.")
        self.model = model or settings.gemini_model
        self._client = http_client or httpx.Client(timeout=settings.http_timeout_s)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        retry=retry_if_exception_type(httpx.TransportError),
        after=_retry_log,
        reraise=True,
    )
    def _post(self, payload: Dict) -> Dict:
        response = self._client.post(
            GEMINI_URL.format(model=self.model),
            params={"key": self.api_key},
            json=payload,
        )
        response.raise_for_status()
        return response.json()

    def generate(self, prompt: str) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": settings.llm_temperature,
                "maxOutputTokens": settings.llm_max_tokens,
            },
        }
        try:
            data = self._post(payload)
        except httpx.HTTPStatusError as exc:
            raise GenerationError(f"Gemini responded with status {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise GenerationError(f"Gemini request failed: {exc}") from exc
        except ValueError as exc:
            raise GenerationError("Gemini returned a non-JSON body") from exc
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            return ""


class LLMTextGenerator:
    """Dispatches a prompt to the requested model family."""

    def __init__(self, gemini: GeminiClient | None = None) -> None:
        self._gemini = gemini

    def generate(self, prompt: str, model_id: str) -> str:
        if model_id == "openai":
            messages = [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ]
            try:
                content = chat_completion(messages)
            except OpenAIError as exc:
                raise GenerationError(f"OpenAI call failed: {exc}") from exc
        elif model_id == "gemini":
            if self._gemini is None:
                self._gemini = GeminiClient()
            content = self._gemini.generate(prompt)
        else:
            raise GenerationError(f"Unknown model {model_id!r}")

        if not content.strip():
            raise GenerationError(f"{model_id} returned an empty response")
        logger.info("%s produced %s characters", model_id, len(content))
        return content
