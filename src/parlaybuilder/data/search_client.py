"""Serper web-search client used for game research."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from parlaybuilder.config import get_settings
from parlaybuilder.data.schemas import SearchResponseSchema
from parlaybuilder.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


def _retry_log(retry_state: RetryCallState) -> None:  # pragma: no cover - logging helper
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Serper retry attempt %s due to %s", retry_state.attempt_number, exception)


class SerperClient:
    """POSTs queries to Serper and returns the organic results."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        num_results: int = 5,
        http_client: httpx.Client | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.serper_api_key
        if not self.api_key:
            raise RuntimeError("SERPER_API_KEY is not configured.")
        self.url = url or settings.serper_url
        self.num_results = num_results
        self._client = http_client or httpx.Client(timeout=settings.search_timeout_s)

    def __enter__(self) -> "SerperClient":  # pragma: no cover - context sugar
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_fixed(1),
        retry=retry_if_exception_type(httpx.TransportError),
        after=_retry_log,
        reraise=True,
    )
    def _post(self, body: Dict[str, Any]) -> Any:
        response = self._client.post(
            self.url,
            json=body,
            headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
        )
        response.raise_for_status()
        return response.json()

    def search(self, query: str) -> Dict[str, Any]:
        try:
            payload = self._post({"q": query, "num": self.num_results})
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"Serper search failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamUnavailable("Serper returned a non-JSON body") from exc
        return SearchResponseSchema.model_validate(payload or {}).model_dump()
