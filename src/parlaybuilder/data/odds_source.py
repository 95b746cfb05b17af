"""Sportsbook odds collection with a fixed fallback chain and sufficiency policy."""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, time, timedelta, timezone
from typing import Dict, List, Protocol
from zoneinfo import ZoneInfo

from parlaybuilder.config import get_settings
from parlaybuilder.data.catalog import (
    FALLBACK_BOOKS,
    SPORT_SLUGS,
    bookmaker_key,
    bookmaker_title,
    markets_for_bet_types,
    partition_markets,
)
from parlaybuilder.errors import UpstreamUnavailable
from parlaybuilder.parlays.types import Game, GenerationRequest, OddsResult, TimeWindow

logger = logging.getLogger(__name__)

# Single-day requests run until this local time on the following day.
DAY_WINDOW_CUTOFF = time(5, 59, 59)

# Added in order when a thin primary slate triggers market expansion.
EXPANSION_BET_TYPES = ("Player Props", "Team Props")


class OddsProvider(Protocol):
    def query(
        self,
        bookmaker: str,
        sport_key: str,
        market_keys: Sequence[str],
        window: TimeWindow,
    ) -> List[Game]: ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compute_window(date_range: int, now: datetime, tz_name: str) -> TimeWindow:
    """Return the commence-time window for a request.

    One-day windows end at 05:59:59 local time the next day so late games in
    western timezones are still included; this overruns a calendar day by six
    hours and is a known limitation.
    """

    if date_range == 1:
        zone = ZoneInfo(tz_name)
        next_day = now.astimezone(zone).date() + timedelta(days=1)
        end = datetime.combine(next_day, DAY_WINDOW_CUTOFF, tzinfo=zone)
        return TimeWindow(start=now, end=end.astimezone(timezone.utc))
    return TimeWindow(start=now, end=now + timedelta(days=date_range))


def games_with_markets(games: Sequence[Game], minimum: int = 1) -> int:
    return sum(1 for game in games if len(game.markets) >= minimum)


def has_sufficient_data(games: Sequence[Game], required_legs: int) -> bool:
    return len(games) >= required_legs and games_with_markets(games) >= required_legs


def calculate_data_quality(games: Sequence[Game]) -> int:
    """Percentage of games carrying at least two markets on the primary slot."""

    if not games:
        return 0
    return round(games_with_markets(games, minimum=2) / len(games) * 100)


def combine_games(existing: Sequence[Game], incoming: Sequence[Game]) -> List[Game]:
    """Append games not already present; earlier data wins on id collisions."""

    seen = {game.id for game in existing}
    combined = list(existing)
    for game in incoming:
        if game.id not in seen:
            combined.append(game)
            seen.add(game.id)
    return combined


def _merge_markets(target: Game, extra: Game) -> None:
    for book in extra.bookmakers:
        slot = next((b for b in target.bookmakers if b.key == book.key), None)
        if slot is None:
            target.bookmakers.append(copy.deepcopy(book))
            continue
        known = {market.key for market in slot.markets}
        slot.markets.extend(copy.deepcopy(m) for m in book.markets if m.key not in known)


class OddsSource:
    """Fetch odds from the requested sportsbook, walking alternates when data is thin."""

    def __init__(
        self,
        provider: OddsProvider,
        fallback_chain: Mapping[str, Sequence[str]] | None = None,
        *,
        prop_batch_size: int | None = None,
        timezone_name: str | None = None,
        expand_markets: bool | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        settings = get_settings()
        self.provider = provider
        self.fallback_chain = FALLBACK_BOOKS if fallback_chain is None else fallback_chain
        self.prop_batch_size = prop_batch_size or settings.prop_market_batch_size
        self.timezone_name = timezone_name or settings.display_timezone
        self.expand_markets = settings.auto_expand_markets if expand_markets is None else expand_markets
        self._clock = clock

    def fetch_odds(self, request: GenerationRequest) -> OddsResult:
        window = compute_window(request.date_range, self._clock(), self.timezone_name)
        primary = bookmaker_key(request.odds_platform)
        books_tried = [primary]
        bet_types = tuple(request.selected_bet_types)
        logger.info(
            "Fetching %s odds for %s until %s",
            request.odds_platform,
            ",".join(request.selected_sports),
            window.end.isoformat(),
        )

        games: List[Game] = []
        expanded = False
        primary_failed = False
        try:
            games = self._fetch_book(primary, request.selected_sports, bet_types, window)
        except UpstreamUnavailable as exc:
            primary_failed = True
            reason = f"Primary book unavailable: {exc}"
            logger.warning("Primary book %s failed: %s", primary, exc)
        else:
            if self.expand_markets:
                games, bet_types = self._expand_markets(primary, request, games, window)
                expanded = bet_types != tuple(request.selected_bet_types)
            if has_sufficient_data(games, request.num_legs):
                return OddsResult(
                    games=games,
                    source=request.odds_platform,
                    fallback_used=False,
                    data_quality=calculate_data_quality(games),
                    books_tried=books_tried,
                    market_expanded=expanded,
                    bet_types=bet_types,
                )
            reason = "Insufficient games in primary book"
            logger.info("Primary book %s insufficient (%s games), trying fallbacks", primary, len(games))

        any_succeeded = not primary_failed
        for alternate in self.fallback_chain.get(primary, ()):
            books_tried.append(alternate)
            try:
                fallback_games = self._fetch_book(alternate, request.selected_sports, bet_types, window)
            except UpstreamUnavailable as exc:
                logger.warning("Fallback %s failed: %s", alternate, exc)
                continue
            any_succeeded = True
            games = combine_games(games, fallback_games)
            if has_sufficient_data(games, request.num_legs):
                logger.info("Sufficient data reached with fallback %s", alternate)
                return OddsResult(
                    games=games,
                    source=f"{request.odds_platform} + {bookmaker_title(alternate)}",
                    fallback_used=True,
                    fallback_reason=reason,
                    data_quality=calculate_data_quality(games),
                    books_tried=books_tried,
                    market_expanded=expanded,
                    bet_types=bet_types,
                )

        if not any_succeeded:
            raise UpstreamUnavailable(
                f"Odds unavailable from {', '.join(books_tried)}"
            )
        logger.warning("Limited data: %s games for %s legs", len(games), request.num_legs)
        return OddsResult(
            games=games,
            source=request.odds_platform,
            fallback_used=False,
            fallback_reason=reason,
            data_quality=calculate_data_quality(games),
            warning="Limited data available",
            books_tried=books_tried,
            market_expanded=expanded,
            bet_types=bet_types,
        )

    def _expand_markets(
        self,
        bookmaker: str,
        request: GenerationRequest,
        games: List[Game],
        window: TimeWindow,
    ) -> tuple[List[Game], tuple[str, ...]]:
        """Re-query the primary book with prop bet types added while the slate is thin.

        The target is twice the requested legs so the generator has room to avoid
        conflicts. An ``All`` selection already covers every market.
        """

        bet_types = list(request.selected_bet_types)
        if any(bet_type.lower() == "all" for bet_type in bet_types):
            return games, tuple(bet_types)
        for extra in EXPANSION_BET_TYPES:
            if len(games) >= 2 * request.num_legs:
                break
            if extra in bet_types:
                continue
            try:
                refreshed = self._fetch_book(bookmaker, request.selected_sports, [*bet_types, extra], window)
            except UpstreamUnavailable as exc:
                logger.warning("Market expansion with %s failed on %s: %s", extra, bookmaker, exc)
                break
            bet_types.append(extra)
            games = combine_games(refreshed, games)
            logger.info("Expanded %s markets with %s: %s games", bookmaker, extra, len(games))
        return games, tuple(bet_types)

    def _fetch_book(
        self,
        bookmaker: str,
        sports: Sequence[str],
        bet_types: Sequence[str],
        window: TimeWindow,
    ) -> List[Game]:
        """Query every sport/market combination for one book.

        Raises ``UpstreamUnavailable`` only when every query for the book failed.
        """

        regular, props = partition_markets(markets_for_bet_types(bet_types))

        batches = [regular] if regular else []
        batches += [props[i : i + self.prop_batch_size] for i in range(0, len(props), self.prop_batch_size)]

        merged: Dict[str, Game] = {}
        attempted = failed = 0
        last_error: UpstreamUnavailable | None = None
        for sport in sports:
            slug = SPORT_SLUGS.get(sport)
            if not slug:
                logger.warning("Unknown sport %s skipped", sport)
                continue
            for markets in batches:
                attempted += 1
                try:
                    games = self.provider.query(bookmaker, slug, markets, window)
                except UpstreamUnavailable as exc:
                    failed += 1
                    last_error = exc
                    logger.warning("%s %s %s failed: %s", bookmaker, slug, ",".join(markets), exc)
                    continue
                for game in games:
                    if not window.contains(game.commence_time):
                        continue
                    if game.id in merged:
                        _merge_markets(merged[game.id], game)
                    else:
                        merged[game.id] = copy.deepcopy(game)

        if attempted and failed == attempted:
            raise UpstreamUnavailable(f"{bookmaker}: all {attempted} queries failed") from last_error
        return list(merged.values())
