"""Dataclasses for games, requests, parsed legs and pipeline results."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

PROP_PREFIXES = ("player_", "team_", "batter_", "pitcher_")


@dataclass
class Outcome:
    name: str
    price: int
    point: float | None = None
    description: str | None = None


@dataclass
class Market:
    key: str
    outcomes: List[Outcome] = field(default_factory=list)

    @property
    def is_prop(self) -> bool:
        return self.key.startswith(PROP_PREFIXES)


@dataclass
class Bookmaker:
    key: str
    title: str
    markets: List[Market] = field(default_factory=list)


@dataclass
class Game:
    """One event as quoted by the odds provider, optionally annotated with research."""

    id: str
    commence_time: datetime
    home_team: str
    away_team: str
    sport_key: str = ""
    bookmakers: List[Bookmaker] = field(default_factory=list)
    research: str | None = None

    @property
    def markets(self) -> List[Market]:
        """Markets on the primary bookmaker slot."""

        if not self.bookmakers:
            return []
        return self.bookmakers[0].markets

    @property
    def label(self) -> str:
        return f"{self.away_team} @ {self.home_team}"

    def with_research(self, research: str | None) -> "Game":
        return replace(self, research=research)


@dataclass
class ResearchTarget:
    game: Game
    priority: int


@dataclass(frozen=True)
class GenerationRequest:
    """Immutable per attempt; retries derive a new variant via ``next_attempt``."""

    selected_sports: tuple[str, ...]
    selected_bet_types: tuple[str, ...]
    num_legs: int
    risk_level: str
    odds_platform: str
    ai_model: str = "openai"
    date_range: int = 1
    attempt: int = 1
    feedback: str = ""

    def next_attempt(self, feedback: str) -> "GenerationRequest":
        combined = "\n".join(part for part in (self.feedback, feedback) if part)
        return replace(self, attempt=self.attempt + 1, feedback=combined)


@dataclass
class Leg:
    date: str
    game: str
    bet: str
    odds: str | None = None
    confidence: int | None = None
    reasoning: str = ""
    section: str = "main"


@dataclass
class ParlaySection:
    kind: str
    title: str
    legs: List[Leg] = field(default_factory=list)
    leg_headers: int = 0
    combined_odds: str | None = None
    payout: int | None = None


@dataclass(frozen=True)
class ParlayQuote:
    combined_decimal: float
    combined_american: str
    payout: int
    total_return: int


@dataclass
class OddsResult:
    games: List[Game]
    source: str
    fallback_used: bool
    data_quality: int
    fallback_reason: str | None = None
    warning: str | None = None
    books_tried: List[str] = field(default_factory=list)
    market_expanded: bool = False
    bet_types: tuple[str, ...] = ()


@dataclass(frozen=True)
class BetConflict:
    game: str
    bet1: str
    bet2: str
    rule: str


@dataclass
class ValidationResult:
    actual_leg_count: int
    has_conflicts: bool
    unique_games_count: int
    total_legs_parsed: int = 0
    wrong_dates: bool = False
    conflicts: List[BetConflict] = field(default_factory=list)


class LoopState(str, Enum):
    ATTEMPTING = "attempting"
    SATISFIED = "satisfied"
    EXHAUSTED = "exhausted"


@dataclass
class GenerationOutcome:
    content: str
    state: LoopState
    attempts: int
    leg_count: int
    feedback: str = ""


@dataclass
class PipelineMetadata:
    odds_source: str
    fallback_used: bool
    data_quality: int
    researched_games: int
    total_games: int
    ai_model: str
    fallback_reason: Optional[str] = None
    warning: Optional[str] = None
    market_expanded: bool = False
    attempts: int = 0
    generation_state: str = ""
    validation: Optional[ValidationResult] = None
    timings: Dict[str, int] = field(default_factory=dict)


@dataclass
class PipelineResult:
    content: str
    metadata: PipelineMetadata


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end
