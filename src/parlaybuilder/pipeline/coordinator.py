"""Phase sequencing for one parlay generation request."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import List
from zoneinfo import ZoneInfo

from parlaybuilder.agents.generation import GenerationLoop
from parlaybuilder.agents.llm_client import LLMTextGenerator
from parlaybuilder.config import get_settings
from parlaybuilder.data.catalog import markets_for_bet_types
from parlaybuilder.data.odds_client import OddsAPIClient
from parlaybuilder.data.odds_source import OddsSource
from parlaybuilder.data.search_client import SerperClient
from parlaybuilder.parlays.corrector import correct_odds
from parlaybuilder.parlays.lock_parlay import normalize_lock_parlay
from parlaybuilder.parlays.text_format import SEPARATOR
from parlaybuilder.parlays.types import Game, GenerationRequest, PipelineMetadata, PipelineResult
from parlaybuilder.parlays.validator import validate_content
from parlaybuilder.pipeline.events import PhaseEvent, PhaseObserver, log_phase_event
from parlaybuilder.research.enricher import ResearchEnricher, format_research_for_prompt

logger = logging.getLogger(__name__)


def filter_markets_by_bet_types(games: Sequence[Game], bet_types: Iterable[str]) -> List[Game]:
    """Keep only markets belonging to the selected bet types; drop games left empty."""

    types = list(bet_types)
    if not types or any(bet_type.lower() == "all" for bet_type in types):
        return list(games)
    allowed = set(markets_for_bet_types(types))
    filtered = []
    for game in games:
        books = [
            replace(book, markets=[m for m in book.markets if m.key in allowed])
            for book in game.bookmakers
        ]
        books = [book for book in books if book.markets]
        if books:
            filtered.append(replace(game, bookmakers=books))
    return filtered


def same_game_notice(game_count: int, num_legs: int) -> str:
    plural = "" if game_count == 1 else "s"
    return "\n".join(
        [
            SEPARATOR,
            "",
            "⚠️ **SAME-GAME PARLAY NOTICE**",
            "",
            f"Due to limited games available ({game_count} game{plural}), additional bet types were "
            f"automatically included to reach {num_legs} legs. This parlay includes multiple bets from "
            "the same game(s), and same-game legs have correlated outcomes.",
            "",
            "**Conflict Prevention Rules Active:**",
            "- ✅ No opposing totals (Over/Under)",
            "- ✅ No opposing spreads",
            "- ✅ No Moneyline + Spread on same team",
            "- ✅ No duplicate bets",
            "",
            SEPARATOR,
        ]
    )



class Coordinator:
    """Runs odds -> research -> filter -> generation -> lock -> correction -> validation."""

    def __init__(
        self,
        odds_source: OddsSource,
        enricher: ResearchEnricher,
        generation_loop: GenerationLoop,
        observers: Sequence[PhaseObserver] | None = None,
        clock: Callable[[], datetime] | None = None,
        *,
        unit_stake: int | None = None,
        timezone_name: str | None = None,
    ) -> None:
        settings = get_settings()
        self.odds_source = odds_source
        self.enricher = enricher
        self.generation_loop = generation_loop
        self.observers = list(observers) if observers is not None else [log_phase_event]
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.unit_stake = unit_stake or settings.unit_stake
        self.timezone_name = timezone_name or settings.display_timezone

    def _emit(self, event: PhaseEvent) -> None:
        for observer in self.observers:
            observer(event)

    def _today(self) -> date:
        return self._clock().astimezone(ZoneInfo(self.timezone_name)).date()

    def generate(self, request: GenerationRequest) -> PipelineResult:
        timings: dict[str, int] = {}

        def _finish(phase: str, started: float, **detail) -> None:
            timings[phase] = int((time.perf_counter() - started) * 1000)
            self._emit(PhaseEvent(phase, "completed", detail, timings[phase]))

        started = time.perf_counter()
        self._emit(PhaseEvent("odds", "started", {"platform": request.odds_platform}))
        try:
            odds = self.odds_source.fetch_odds(request)
        except Exception as exc:
            self._emit(PhaseEvent("odds", "failed", {"error": str(exc)}))
            raise
        _finish("odds", started, games=len(odds.games), source=odds.source, fallback=odds.fallback_used)
        if odds.market_expanded:
            logger.info("Markets expanded to %s", ", ".join(odds.bet_types))
            request = replace(request, selected_bet_types=odds.bet_types)

        started = time.perf_counter()
        self._emit(PhaseEvent("research", "started", {"games": len(odds.games)}))
        enriched = self.enricher.enrich(odds.games, now=self._clock())
        researched = sum(1 for game in enriched if game.research)
        _finish("research", started, researched=researched)

        started = time.perf_counter()
        candidates = filter_markets_by_bet_types(enriched, request.selected_bet_types)
        if not candidates:
            logger.warning("No games left after bet type filter; using unfiltered games")
            candidates = enriched
        _finish("filter", started, games=len(candidates))

        started = time.perf_counter()
        self._emit(PhaseEvent("generation", "started", {"model": request.ai_model}))
        today = self._today()
        try:
            outcome = self.generation_loop.run(
                request, candidates, format_research_for_prompt(candidates), today=today
            )
        except Exception as exc:
            self._emit(PhaseEvent("generation", "failed", {"error": str(exc)}))
            raise
        _finish("generation", started, attempts=outcome.attempts, state=outcome.state.value)

        started = time.perf_counter()
        content = normalize_lock_parlay(outcome.content)
        _finish("lock", started)

        started = time.perf_counter()
        content = correct_odds(content, self.unit_stake)
        if odds.market_expanded:
            content = f"{content}\n\n{same_game_notice(len(odds.games), request.num_legs)}"
        _finish("correction", started)

        started = time.perf_counter()
        validation = validate_content(content, candidates, today=today, tz_name=self.timezone_name)
        _finish(
            "validation",
            started,
            legs=validation.actual_leg_count,
            conflicts=len(validation.conflicts),
            wrong_dates=validation.wrong_dates,
        )

        metadata = PipelineMetadata(
            odds_source=odds.source,
            fallback_used=odds.fallback_used,
            fallback_reason=odds.fallback_reason,
            data_quality=odds.data_quality,
            researched_games=researched,
            total_games=len(odds.games),
            ai_model=request.ai_model,
            warning=odds.warning,
            market_expanded=odds.market_expanded,
            attempts=outcome.attempts,
            generation_state=outcome.state.value,
            validation=validation,
            timings=timings,
        )
        return PipelineResult(content=content, metadata=metadata)


def build_default_coordinator() -> Coordinator:
    """Wire the production clients from settings."""

    settings = get_settings()
    search = SerperClient() if settings.serper_api_key else None
    return Coordinator(
        odds_source=OddsSource(OddsAPIClient()),
        enricher=ResearchEnricher(search),
        generation_loop=GenerationLoop(LLMTextGenerator()),
    )
