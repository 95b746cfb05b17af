"""Structural and conflict checks over corrected parlay text."""

from __future__ import annotations

import itertools
import logging
import re
from collections.abc import Sequence
from datetime import date
from typing import List, Optional
from zoneinfo import ZoneInfo

from parlaybuilder.config import get_settings
from parlaybuilder.parlays.text_format import ParsedContent, parse_content, parse_leg_date
from parlaybuilder.parlays.types import BetConflict, Game, Leg, ValidationResult

logger = logging.getLogger(__name__)

_PAREN_RE = re.compile(r"\([^)]*\)")
_NEGATIVE_LINE_RE = re.compile(r"(?:^|\s)-\d")
_POSITIVE_LINE_RE = re.compile(r"(?:^|\s)\+\d")
_MONEYLINE_RE = re.compile(r"\bmoneyline\b|\bml\b")
_OVER_RE = re.compile(r"\bover\b")
_UNDER_RE = re.compile(r"\bunder\b")


def _selection(bet: str) -> str:
    """Case-folded bet text without parenthesised prices."""

    return " ".join(_PAREN_RE.sub(" ", bet).casefold().split())


def _leading_token(text: str) -> str:
    return text.split(" ", 1)[0] if text else ""


def _is_total(text: str) -> bool:
    return bool(_OVER_RE.search(text) or _UNDER_RE.search(text))


def _is_spread(text: str) -> bool:
    if _MONEYLINE_RE.search(text) or _is_total(text):
        return False
    return "spread" in text or bool(_NEGATIVE_LINE_RE.search(text) or _POSITIVE_LINE_RE.search(text))


def conflict_rule(bet1: str, bet2: str) -> Optional[str]:
    """Name the rule two same-game bets break, or None when they can coexist."""

    a, b = _selection(bet1), _selection(bet2)
    if a == b:
        return "duplicate"
    if (_OVER_RE.search(a) and _UNDER_RE.search(b)) or (_UNDER_RE.search(a) and _OVER_RE.search(b)):
        return "opposing_totals"
    signs_differ = (_NEGATIVE_LINE_RE.search(a) and _POSITIVE_LINE_RE.search(b)) or (
        _POSITIVE_LINE_RE.search(a) and _NEGATIVE_LINE_RE.search(b)
    )
    if signs_differ and _leading_token(a) != _leading_token(b):
        return "opposing_spread"
    if _leading_token(a) == _leading_token(b) and (
        (_MONEYLINE_RE.search(a) and _is_spread(b)) or (_MONEYLINE_RE.search(b) and _is_spread(a))
    ):
        return "moneyline_and_spread"
    return None


def find_conflicts(legs: Sequence[Leg]) -> List[BetConflict]:
    """Same-game pairs within one section; the lock parlay may repeat main legs."""

    conflicts = []
    for first, second in itertools.combinations(legs, 2):
        if first.game != second.game or first.section != second.section:
            continue
        rule = conflict_rule(first.bet, second.bet)
        if rule:
            conflicts.append(BetConflict(game=first.game, bet1=first.bet, bet2=second.bet, rule=rule))
    return conflicts


def detect_wrong_dates(
    parsed: ParsedContent,
    games: Sequence[Game] = (),
    today: date | None = None,
    tz_name: str | None = None,
) -> bool:
    """Flag malformed header dates and legs stamped with today's date for a later game."""

    if any(raw and parse_leg_date(raw) is None for raw in parsed.header_dates):
        return True
    if today is None or not games:
        return False
    zone = ZoneInfo(tz_name or get_settings().display_timezone)
    start_dates = {game.label: game.commence_time.astimezone(zone).date() for game in games}
    for leg in parsed.legs:
        if parse_leg_date(leg.date) != today:
            continue
        actual = start_dates.get(leg.game)
        if actual is not None and actual != today:
            return True
    return False


def validate_content(
    content: str,
    games: Sequence[Game] = (),
    today: date | None = None,
    tz_name: str | None = None,
) -> ValidationResult:
    parsed = parse_content(content)
    conflicts = find_conflicts(parsed.legs)
    unique_games = {leg.game for leg in parsed.legs}
    wrong_dates = detect_wrong_dates(parsed, games, today, tz_name)

    for conflict in conflicts:
        logger.warning("Conflict in %s: %s vs %s (%s)", conflict.game, conflict.bet1, conflict.bet2, conflict.rule)
    if wrong_dates:
        logger.warning("Generated legs carry malformed or substituted dates")

    return ValidationResult(
        actual_leg_count=parsed.main_leg_count,
        has_conflicts=bool(conflicts),
        unique_games_count=len(unique_games),
        total_legs_parsed=len(parsed.legs),
        wrong_dates=wrong_dates,
        conflicts=conflicts,
    )
