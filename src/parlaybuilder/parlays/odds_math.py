"""Odds conversion and parlay arithmetic."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable

from parlaybuilder.errors import InvalidOddsFormat
from parlaybuilder.parlays.types import ParlayQuote

EVEN_MONEY_TOKENS = {"EV", "EVEN", "PK", "PICK", "PICKEM", "PICK'EM"}
_SIGNED_ODDS = re.compile(r"^([+-]\d{2,5})")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_american(odds: int | str) -> int:
    if isinstance(odds, bool):
        raise InvalidOddsFormat(f"Invalid American odds: {odds!r}")
    if isinstance(odds, int):
        value = odds
    else:
        try:
            value = int(str(odds).strip())
        except ValueError as exc:
            raise InvalidOddsFormat(f"Invalid American odds: {odds!r}") from exc
    if abs(value) < 100:
        raise InvalidOddsFormat(f"Invalid American odds: {odds!r}")
    return value


def american_to_decimal(odds: int | str) -> float:
    value = parse_american(odds)
    return 1 + (value / 100) if value > 0 else 1 + (100 / abs(value))


def decimal_to_american(decimal: float) -> str:
    """Convert decimal odds back to a signed American string.

    Rounding means this is not an exact inverse of ``american_to_decimal``;
    small prices can drift by one.
    """

    if decimal <= 1:
        raise InvalidOddsFormat(f"Invalid decimal odds: {decimal}")
    if decimal >= 2:
        return f"+{_round_half_up((decimal - 1) * 100)}"
    return f"-{_round_half_up(100 / (decimal - 1))}"


def normalize_american(token: str | None) -> str | None:
    """Return a signed American token, mapping even-money words to ``+100``."""

    text = (token or "").strip().upper()
    if text in EVEN_MONEY_TOKENS:
        return "+100"
    match = _SIGNED_ODDS.match(text)
    return match.group(1) if match else None


def implied_probability(odds: int | str) -> float:
    value = parse_american(odds)
    if value > 0:
        return 100 / (value + 100)
    return -value / (-value + 100)


def combine_parlay(odds_list: Iterable[int | str], unit_stake: int = 100) -> ParlayQuote:
    """Combine leg prices into parlay odds and the payout on ``unit_stake``.

    ``payout`` is net profit; ``total_return`` adds the stake back.
    """

    odds = list(odds_list)
    if not odds:
        raise InvalidOddsFormat("odds_list must be non-empty")
    decimal = 1.0
    for price in odds:
        decimal *= american_to_decimal(price)
    return ParlayQuote(
        combined_decimal=decimal,
        combined_american=decimal_to_american(decimal),
        payout=_round_half_up((decimal - 1) * unit_stake),
        total_return=_round_half_up(decimal * unit_stake),
    )
