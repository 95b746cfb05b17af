"""Prioritised, batched web research for candidate games."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from parlaybuilder.config import get_settings
from parlaybuilder.data.catalog import SPORT_SLUGS
from parlaybuilder.parlays.types import Game, ResearchTarget

logger = logging.getLogger(__name__)

PLAYER_MARKET_PREFIXES = ("player_", "batter_", "pitcher_")
SPORT_LABELS = {slug: label for label, slug in SPORT_SLUGS.items()}

KEYWORD_INSIGHTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("injury", "injured", "questionable"), "Injury concerns detected"),
    (("weather", "rain", "wind"), "Weather factor identified"),
    (("streak", "consecutive", "trend"), "Performance trend noted"),
    (("line", "spread", "odds"), "Betting line movement detected"),
)


class SearchProvider(Protocol):
    def search(self, query: str) -> Dict[str, Any]: ...


def calculate_research_priority(game: Game, now: datetime) -> int:
    """Urgency plus market richness: +50/<6h, +30/<24h, +10/<48h, +5 per market."""

    hours_until = (game.commence_time - now).total_seconds() / 3600
    priority = 0
    if hours_until < 6:
        priority += 50
    elif hours_until < 24:
        priority += 30
    elif hours_until < 48:
        priority += 10
    return priority + 5 * len(game.markets)


def prioritize_research_targets(games: Sequence[Game], now: datetime, limit: int = 25) -> List[ResearchTarget]:
    targets = [
        ResearchTarget(game=game, priority=calculate_research_priority(game, now))
        for game in games
        if game.markets
    ]
    targets.sort(key=lambda target: target.priority, reverse=True)
    return targets[:limit]


def extract_key_insights(text: str) -> Optional[str]:
    lowered = text.lower()
    found = [label for words, label in KEYWORD_INSIGHTS if any(word in lowered for word in words)]
    return ", ".join(found) if found else None


def synthesize_research(payload: Dict[str, Any] | None, char_budget: int = 1200) -> Optional[str]:
    """Collapse a search payload into a short research note.

    Keyword presence only; the snippets are not interpreted.
    """

    results = (payload or {}).get("organic") or []
    if not results:
        return None
    insights = " | ".join(
        f"{item.get('title', '')}: {item.get('snippet', '')}" for item in results[:5]
    )[:char_budget]
    analysis = extract_key_insights(insights)
    summary = f"{insights} | Analysis: {analysis}" if analysis else insights
    return summary[:char_budget]


def build_research_query(game: Game) -> str:
    when = game.commence_time
    return (
        f"{game.away_team} vs {game.home_team} {when:%b} {when.day} "
        "injury report recent performance analysis prediction weather"
    )


def extract_player_names(game: Game, limit: int = 2) -> List[str]:
    """Distinct player names quoted in the game's player markets, in market order."""

    names: List[str] = []
    for market in game.markets:
        if not market.key.startswith(PLAYER_MARKET_PREFIXES):
            continue
        for outcome in market.outcomes:
            name = (outcome.description or "").strip()
            if name and name not in ("Over", "Under") and name not in names:
                names.append(name)
    return names[:limit]


def build_player_query(name: str, game: Game) -> str:
    words = [name, SPORT_LABELS.get(game.sport_key, ""), "stats recent games", str(game.commence_time.year)]
    return " ".join(word for word in words if word)


def summarize_player_research(name: str, payload: Dict[str, Any] | None) -> Optional[str]:
    results = (payload or {}).get("organic") or []
    snippet = (results[0].get("snippet") or "").strip() if results else ""
    return f"{name}: {snippet[:150]}" if snippet else None



def format_research_for_prompt(games: Sequence[Game], limit: int = 20) -> str:
    lines = []
    for game in [g for g in games if g.research][:limit]:
        when = game.commence_time
        lines.append(f"{when.month}/{when.day}/{when.year} - {game.label}\n   RESEARCH: {game.research}")
    return "\n\n".join(lines)


class ResearchEnricher:
    """Annotates the most urgent, market-rich games with research text."""

    def __init__(
        self,
        search_provider: SearchProvider | None,
        *,
        batch_size: int | None = None,
        top_n: int | None = None,
        char_budget: int | None = None,
        player_games: int | None = None,
        players_per_game: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        settings = get_settings()
        self.search_provider = search_provider
        self.batch_size = batch_size or settings.research_batch_size
        self.top_n = settings.research_top_n if top_n is None else top_n
        self.char_budget = char_budget or settings.research_char_budget
        self.player_games = settings.player_research_games if player_games is None else player_games
        self.players_per_game = settings.players_per_game if players_per_game is None else players_per_game
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def enrich(self, games: Sequence[Game], now: datetime | None = None) -> List[Game]:
        if self.search_provider is None:
            logger.info("No search provider configured; skipping research")
            return [game.with_research(None) for game in games]

        now = now or self._clock()
        targets = prioritize_research_targets(games, now, self.top_n)
        players: Dict[str, List[str]] = {}
        for target in targets:
            if len(players) >= self.player_games or not self.players_per_game:
                break
            names = extract_player_names(target.game, self.players_per_game)
            if names:
                players[target.game.id] = names

        research: Dict[str, Optional[str]] = {}
        batches = [targets[i : i + self.batch_size] for i in range(0, len(targets), self.batch_size)]
        for number, batch in enumerate(batches, start=1):
            logger.info("Researching batch %s/%s: %s games", number, len(batches), len(batch))
            with ThreadPoolExecutor(max_workers=self.batch_size) as executor:
                futures = {
                    target.game.id: executor.submit(
                        self._research_game, target.game, players.get(target.game.id, [])
                    )
                    for target in batch
                }
                for game_id, future in futures.items():
                    research[game_id] = future.result()

        logger.info("Research complete: %s/%s games annotated", sum(1 for v in research.values() if v), len(games))
        return [game.with_research(research.get(game.id)) for game in games]

    def _research_game(self, game: Game, player_names: Sequence[str] = ()) -> Optional[str]:
        note: Optional[str] = None
        try:
            payload = self.search_provider.search(build_research_query(game))
        except Exception as exc:  # isolated per game
            logger.warning("Research failed for %s: %s", game.label, exc)
        else:
            note = synthesize_research(payload, self.char_budget)

        stats = [summary for summary in (self._research_player(name, game) for name in player_names) if summary]
        if not stats:
            return note
        player_note = "PLAYER STATS: " + " | ".join(stats)
        return f"{note} | {player_note}" if note else player_note

    def _research_player(self, name: str, game: Game) -> Optional[str]:
        try:
            payload = self.search_provider.search(build_player_query(name, game))
        except Exception as exc:  # isolated per player
            logger.warning("Player research failed for %s: %s", name, exc)
            return None
        return summarize_player_research(name, payload)
