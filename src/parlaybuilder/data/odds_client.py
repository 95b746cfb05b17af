"""Thin client for The Odds API v4."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import httpx
from pydantic import ValidationError
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from parlaybuilder.config import get_settings
from parlaybuilder.data.schemas import OddsEventSchema
from parlaybuilder.errors import UpstreamUnavailable
from parlaybuilder.parlays.types import Game, TimeWindow

logger = logging.getLogger(__name__)


def _retry_log(retry_state: RetryCallState) -> None:  # pragma: no cover - logging helper
    attempt = retry_state.attempt_number
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Odds API retry attempt %s due to %s", attempt, exception)


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class OddsAPIClient:
    """Convenient wrapper for The Odds API odds endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.odds_api_key
        if not self.api_key:
            raise RuntimeError("ODDS_API_KEY is not configured.")
        self.base_url = (base_url or settings.odds_api_base_url).rstrip("/")
        self._client = http_client or httpx.Client(timeout=settings.http_timeout_s)

    def __enter__(self) -> "OddsAPIClient":  # pragma: no cover - context sugar
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        retry=retry_if_exception_type(httpx.TransportError),
        after=_retry_log,
        reraise=True,
    )
    def _request(self, path: str, params: Dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        response = self._client.get(url, params={**params, "apiKey": self.api_key})
        response.raise_for_status()
        return response.json()

    def query(
        self,
        bookmaker: str,
        sport_key: str,
        market_keys: Iterable[str],
        window: TimeWindow,
    ) -> List[Game]:
        """Return games quoted by ``bookmaker`` for ``market_keys`` inside ``window``."""

        params = {
            "regions": "us",
            "markets": ",".join(market_keys),
            "oddsFormat": "american",
            "dateFormat": "iso",
            "bookmakers": bookmaker,
            "commenceTimeFrom": _iso(window.start),
            "commenceTimeTo": _iso(window.end),
        }
        try:
            payload = self._request(f"/sports/{sport_key}/odds/", params)
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(f"{bookmaker}/{sport_key} odds request failed: {exc}") from exc
        except ValueError as exc:
            raise UpstreamUnavailable(f"{bookmaker}/{sport_key} returned a non-JSON body") from exc
        if not isinstance(payload, list):
            raise UpstreamUnavailable(f"{bookmaker}/{sport_key} returned a non-list payload")
        games: List[Game] = []
        for item in payload:
            try:
                games.append(OddsEventSchema.model_validate(item).to_game())
            except ValidationError as exc:
                logger.warning("Skipping malformed event from %s: %s", bookmaker, exc)
        return games
