"""Shared fixtures for parlay builder tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from parlaybuilder.parlays.types import Bookmaker, Game, Market, Outcome

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

SAMPLE_CONTENT = """**🎯 3-Leg Parlay: Sunday Slate**

**Legs:**
1. 📅 DATE: 10/19/2026
   Game: Giants @ Eagles
   Bet: Eagles -7
   Odds: -110
   Confidence: 8/10
   Reasoning: Giants QB is questionable with an ankle injury.

2. 📅 DATE: 10/19/2026
   Game: Giants @ Eagles
   Bet: Over 47.5
   Odds: -110
   Confidence: 7/10
   Reasoning: Both offenses are trending up.

3. 📅 DATE: 10/19/2026
   Game: Bears @ Packers
   Bet: Packers ML
   Odds: +150
   Confidence: 6/10
   Reasoning: Packers are 5-1 at home.

**Combined Odds:** +999
**Payout on $100:** $5
**Overall Confidence:** 7/10

---

**🔒 BONUS LOCK PARLAY: Chalk**

**Legs:**
1. 📅 DATE: 10/19/2026
   Game: Jets @ Bills
   Bet: Bills ML
   Odds: -200
   Confidence: 9/10
   Reasoning: Bills have won six straight.

2. 📅 DATE: 10/19/2026
   Game: Rams @ 49ers
   Bet: 49ers -3 (-120)
   Confidence: 8/10
   Reasoning: Rams are missing two starters.

**Combined Odds:** +100
**Payout on $100:** $0
**Why These Are Locks:** Healthy favorites at home."""


def make_game(
    game_id: str,
    hours_out: float = 3,
    markets: int = 1,
    home: str = "Eagles",
    away: str = "Giants",
    book: str = "draftkings",
    now: datetime = NOW,
) -> Game:
    keys = ["h2h", "spreads", "totals", "player_points", "team_totals"][:markets]
    return Game(
        id=game_id,
        commence_time=now + timedelta(hours=hours_out),
        home_team=home,
        away_team=away,
        sport_key="americanfootball_nfl",
        bookmakers=[
            Bookmaker(
                key=book,
                title=book.title(),
                markets=[
                    Market(key=key, outcomes=[Outcome(name=home, price=-110, point=-3.5)])
                    for key in keys
                ],
            )
        ],
    )


def leg_block(count: int, game: str = "Giants @ Eagles") -> str:
    legs = [
        f"{n}. 📅 DATE: 10/19/2026\n   Game: {game} {n}\n   Bet: Team {n} ML\n   Odds: -110"
        for n in range(1, count + 1)
    ]
    return f"**🎯 {count}-Leg Parlay: Test**\n\n" + "\n\n".join(legs) + "\n\n**Combined Odds:** +100\n---"


@pytest.fixture
def sample_content() -> str:
    return SAMPLE_CONTENT


@pytest.fixture
def fixed_now() -> datetime:
    return NOW
