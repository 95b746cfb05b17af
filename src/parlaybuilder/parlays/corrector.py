"""Rewrite generator-authored parlay footers with computed odds and payout."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List

from parlaybuilder.errors import InvalidOddsFormat
from parlaybuilder.parlays.odds_math import combine_parlay, normalize_american
from parlaybuilder.parlays.text_format import (
    COMBINED_ODDS_MARKER,
    PAYOUT_MARKER,
    LineKind,
    bet_line_odds,
    classify_line,
)

logger = logging.getLogger(__name__)


class _State(Enum):
    OUTSIDE = "outside"
    IN_SECTION = "in_section"


def correct_odds(content: str, unit_stake: int = 100) -> str:
    """Replace every ``Combined Odds`` / ``Payout`` footer with values derived from leg odds.

    Whatever the generator wrote on those lines is discarded. A section where
    some leg has no usable price, or whose computation fails, keeps its footers
    as written. Running the pass twice gives the same text as running it once.
    """

    state = _State.OUTSIDE
    leg_odds: List[str] = []
    legs_seen = 0
    expecting_odds = False
    pushed_from: str | None = None
    fixed: List[str] = []

    for line in content.split("\n"):
        token = classify_line(line)

        if token.kind in (LineKind.MAIN_HEADER, LineKind.LOCK_HEADER):
            state = _State.IN_SECTION
            leg_odds, legs_seen, expecting_odds, pushed_from = [], 0, False, None
            fixed.append(line)
            continue

        if state is _State.IN_SECTION:
            if token.kind is LineKind.LEG_HEADER:
                legs_seen += 1
                expecting_odds, pushed_from = True, None
            elif token.kind is LineKind.ODDS:
                normalized = normalize_american(token.value)
                if normalized:
                    # an explicit Odds line supersedes a price taken from the Bet line
                    if pushed_from == "bet":
                        leg_odds[-1] = normalized
                    else:
                        leg_odds.append(normalized)
                    pushed_from, expecting_odds = "odds", False
            elif token.kind is LineKind.BET and expecting_odds and pushed_from is None:
                normalized = bet_line_odds(token.value)
                if normalized:
                    leg_odds.append(normalized)
                    pushed_from = "bet"

        if token.kind in (LineKind.COMBINED_ODDS, LineKind.PAYOUT) and leg_odds:
            if legs_seen and len(leg_odds) != legs_seen:
                logger.warning("Leaving footer unchanged: %s of %s legs carry usable odds", len(leg_odds), legs_seen)
                fixed.append(line)
                continue
            try:
                quote = combine_parlay(leg_odds, unit_stake)
            except InvalidOddsFormat as exc:
                logger.warning("Leaving footer unchanged: %s", exc)
                fixed.append(line)
                continue
            if token.kind is LineKind.COMBINED_ODDS:
                fixed.append(f"{COMBINED_ODDS_MARKER} {quote.combined_american}")
            else:
                fixed.append(f"{PAYOUT_MARKER} ${quote.payout}")
            continue

        if token.kind is LineKind.SECTION_END:
            state = _State.OUTSIDE
            leg_odds, legs_seen, expecting_odds, pushed_from = [], 0, False, None

        fixed.append(line)

    return "\n".join(fixed)
