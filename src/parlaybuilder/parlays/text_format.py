"""Line grammar for generated parlay text.

The generator is asked to emit::

    **🎯 3-Leg Parlay: Title**
    1. 📅 DATE: 10/19/2026
       Game: Away @ Home
       Bet: Away -3.5
       Odds: -110
       Confidence: 8/10
       Reasoning: ...
    **Combined Odds:** +596
    **Payout on $100:** $596
    ---
    **🔒 BONUS LOCK PARLAY: Title**
    ...
    **Why These Are Locks:** ...

Every line is classified on its own. Unrecognised lines are plain text, so a
deviating response degrades to fewer parsed legs rather than an exception.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from parlaybuilder.parlays.odds_math import normalize_american
from parlaybuilder.parlays.types import Leg, ParlaySection

COMBINED_ODDS_MARKER = "**Combined Odds:**"
PAYOUT_MARKER = "**Payout on $100:**"
LOCKS_MARKER = "**Why These Are Locks:**"
SEPARATOR = "---"

_ODDS_TOKEN = r"[+-]?\d{2,5}|EVEN|EV|PK|PICK"
LEG_HEADER_RE = re.compile(r"^\s*(\d+)\.\s*📅")
LEG_DATE_RE = re.compile(r"📅\s*(?:DATE:)?\s*(\S*)", re.IGNORECASE)
GAME_RE = re.compile(r"^\s*Game:\s*(.+?)\s*$")
BET_RE = re.compile(r"^\s*Bet:\s*(.+?)\s*$")
ODDS_RE = re.compile(rf"^\s*Odds:\s*({_ODDS_TOKEN})", re.IGNORECASE)
PAREN_ODDS_RE = re.compile(rf"\(({_ODDS_TOKEN})\)", re.IGNORECASE)
CONFIDENCE_RE = re.compile(r"^\s*Confidence:\s*(\d+)\s*/\s*10", re.IGNORECASE)
REASONING_RE = re.compile(r"^\s*Reasoning:\s*(.*)$")
PAYOUT_VALUE_RE = re.compile(r"\$\s*([\d,]+)")


class LineKind(str, Enum):
    MAIN_HEADER = "main_header"
    LOCK_HEADER = "lock_header"
    LEG_HEADER = "leg_header"
    GAME = "game"
    BET = "bet"
    ODDS = "odds"
    CONFIDENCE = "confidence"
    REASONING = "reasoning"
    COMBINED_ODDS = "combined_odds"
    PAYOUT = "payout"
    SECTION_END = "section_end"
    TEXT = "text"


@dataclass(frozen=True)
class LineToken:
    kind: LineKind
    value: str = ""


def is_main_header(line: str) -> bool:
    return "🎯" in line and "-Leg Parlay:" in line


def is_lock_header(line: str) -> bool:
    return "🔒" in line and "LOCK PARLAY:" in line


def classify_line(line: str) -> LineToken:
    if is_main_header(line):
        return LineToken(LineKind.MAIN_HEADER, line.strip().strip("*").strip())
    if is_lock_header(line):
        return LineToken(LineKind.LOCK_HEADER, line.strip().strip("*").strip())
    if LEG_HEADER_RE.match(line):
        match = LEG_DATE_RE.search(line)
        return LineToken(LineKind.LEG_HEADER, match.group(1) if match else "")
    if line.strip().startswith("Odds:"):
        match = ODDS_RE.match(line)
        return LineToken(LineKind.ODDS, match.group(1) if match else "")
    for kind, pattern in (
        (LineKind.BET, BET_RE),
        (LineKind.GAME, GAME_RE),
        (LineKind.CONFIDENCE, CONFIDENCE_RE),
        (LineKind.REASONING, REASONING_RE),
    ):
        match = pattern.match(line)
        if match:
            return LineToken(kind, match.group(1))
    if COMBINED_ODDS_MARKER in line:
        return LineToken(LineKind.COMBINED_ODDS, line.split(COMBINED_ODDS_MARKER, 1)[1].strip())
    if PAYOUT_MARKER in line:
        return LineToken(LineKind.PAYOUT, line.split(PAYOUT_MARKER, 1)[1].strip())
    if SEPARATOR in line or LOCKS_MARKER in line:
        return LineToken(LineKind.SECTION_END)
    return LineToken(LineKind.TEXT)


def bet_line_odds(bet: str) -> Optional[str]:
    """Last parenthesised price on a bet line, e.g. ``Over 47.5 (-110)``."""

    matches = PAREN_ODDS_RE.findall(bet)
    return normalize_american(matches[-1]) if matches else None


def parse_leg_date(raw: str) -> Optional[date]:
    try:
        return datetime.strptime(raw.strip(), "%m/%d/%Y").date()
    except ValueError:
        return None


@dataclass
class ParsedContent:
    sections: List[ParlaySection] = field(default_factory=list)
    legs: List[Leg] = field(default_factory=list)
    header_dates: List[str] = field(default_factory=list)

    @property
    def main_leg_count(self) -> int:
        """Numbered headers in the main section, or in the whole text if it has no sections."""

        if not self.sections:
            return len(self.header_dates)
        return sum(section.leg_headers for section in self.sections if section.kind == "main")


def parse_content(content: str) -> ParsedContent:
    parsed = ParsedContent()
    lines = content.split("\n")
    section: ParlaySection | None = None
    current_date = ""
    last_leg: Leg | None = None

    for index, line in enumerate(lines):
        token = classify_line(line)
        if token.kind in (LineKind.MAIN_HEADER, LineKind.LOCK_HEADER):
            kind = "main" if token.kind is LineKind.MAIN_HEADER else "lock"
            section = ParlaySection(kind=kind, title=token.value)
            parsed.sections.append(section)
            current_date, last_leg = "", None
        elif token.kind is LineKind.LEG_HEADER:
            parsed.header_dates.append(token.value)
            current_date, last_leg = token.value, None
            if section is not None:
                section.leg_headers += 1
        elif token.kind is LineKind.GAME:
            following = classify_line(lines[index + 1]) if index + 1 < len(lines) else None
            if following is None or following.kind is not LineKind.BET:
                continue
            last_leg = Leg(
                date=current_date,
                game=token.value,
                bet=following.value,
                odds=bet_line_odds(following.value),
                section=section.kind if section else "main",
            )
            parsed.legs.append(last_leg)
            if section is not None:
                section.legs.append(last_leg)
        elif token.kind is LineKind.ODDS and last_leg is not None:
            last_leg.odds = normalize_american(token.value) or last_leg.odds
        elif token.kind is LineKind.CONFIDENCE and last_leg is not None:
            last_leg.confidence = int(token.value)
        elif token.kind is LineKind.REASONING and last_leg is not None:
            last_leg.reasoning = token.value
        elif token.kind is LineKind.COMBINED_ODDS and section is not None:
            section.combined_odds = token.value or None
        elif token.kind is LineKind.PAYOUT and section is not None:
            match = PAYOUT_VALUE_RE.search(token.value)
            section.payout = int(match.group(1).replace(",", "")) if match else None
        elif token.kind is LineKind.SECTION_END:
            section, last_leg = None, None
    return parsed


def count_legs(content: str) -> int:
    return parse_content(content).main_leg_count
