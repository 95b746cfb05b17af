"""Keep exactly one two-pick lock parlay in generated content."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import List

from parlaybuilder.errors import InvalidOddsFormat
from parlaybuilder.parlays.odds_math import implied_probability
from parlaybuilder.parlays.text_format import (
    COMBINED_ODDS_MARKER,
    LOCKS_MARKER,
    PAYOUT_MARKER,
    SEPARATOR,
    LineKind,
    classify_line,
    parse_content,
)
from parlaybuilder.parlays.types import Leg

logger = logging.getLogger(__name__)

LOCK_LEGS = 2
LOCK_TITLE = "**🔒 BONUS LOCK PARLAY: Two High-Confidence Picks**"
LOCK_REASON = f"{LOCKS_MARKER} Highest confidence legs with solid research support and reasonable odds."
FOOTER_PLACEHOLDER = "[WILL BE CALCULATED AUTOMATICALLY]"


def _safety(leg: Leg) -> float:
    if not leg.odds:
        return 0.0
    try:
        return implied_probability(leg.odds)
    except InvalidOddsFormat:
        return 0.0


def pick_lock_legs(legs: Sequence[Leg], count: int = LOCK_LEGS) -> List[Leg]:
    """Highest confidence legs first; priced legs beat unpriced ones, shorter prices break ties."""

    ranked = sorted(legs, key=lambda leg: (leg.odds is not None, leg.confidence or 0, _safety(leg)), reverse=True)
    return ranked[:count]


def format_lock_section(legs: Sequence[Leg]) -> str:
    blocks = []
    for number, leg in enumerate(legs, start=1):
        lines = [
            f"{number}. 📅 DATE: {leg.date}",
            f"   Game: {leg.game}",
            f"   Bet: {leg.bet}",
        ]
        if leg.odds:
            lines.append(f"   Odds: {leg.odds}")
        if leg.confidence is not None:
            lines.append(f"   Confidence: {leg.confidence}/10")
        if leg.reasoning:
            lines.append(f"   Reasoning: {leg.reasoning}")
        blocks.append("\n".join(lines))
    return "\n".join(
        [
            LOCK_TITLE,
            "",
            "**Legs:**",
            "\n\n".join(blocks),
            "",
            f"{COMBINED_ODDS_MARKER} {FOOTER_PLACEHOLDER}",
            f"{PAYOUT_MARKER} ${FOOTER_PLACEHOLDER}",
            LOCK_REASON,
        ]
    )


def remove_lock_sections(content: str) -> str:
    """Drop every lock section, from its header through its closing line."""

    kept: List[str] = []
    skipping = False
    for line in content.split("\n"):
        kind = classify_line(line).kind
        if kind is LineKind.LOCK_HEADER:
            skipping = True
            continue
        if skipping:
            if LOCKS_MARKER in line:
                skipping = False
                continue
            if kind is LineKind.MAIN_HEADER or kind is LineKind.SECTION_END:
                skipping = False
            else:
                continue
        kept.append(line)
    cleaned = re.sub(r"\n{3,}", "\n\n", "\n".join(kept)).strip()
    while cleaned.endswith(SEPARATOR):
        cleaned = cleaned[: -len(SEPARATOR)].rstrip()
    return cleaned


def normalize_lock_parlay(content: str) -> str:
    """Return content carrying exactly one lock parlay of two legs.

    A single well-formed two-leg lock is kept as written. Otherwise every lock
    section is removed and a new one is built from the strongest main legs; with
    fewer than two main legs no lock is appended.
    """

    parsed = parse_content(content)
    locks = [section for section in parsed.sections if section.kind == "lock"]
    if len(locks) == 1 and locks[0].leg_headers == LOCK_LEGS:
        return content

    main_legs = [leg for leg in parsed.legs if leg.section == "main"]
    cleaned = remove_lock_sections(content)
    if len(main_legs) < LOCK_LEGS:
        logger.warning("Only %s main legs; no lock parlay built", len(main_legs))
        return cleaned
    picked = pick_lock_legs(main_legs)
    logger.info("Rebuilt lock parlay from main legs (%s lock sections found)", len(locks))
    return f"{cleaned}\n\n{SEPARATOR}\n\n{format_lock_section(picked)}"
