"""Sports, markets, sportsbooks and fallback policy used across the pipeline."""

from __future__ import annotations

from collections.abc import Iterable

from parlaybuilder.parlays.types import PROP_PREFIXES

SPORT_SLUGS: dict[str, str] = {
    "NFL": "americanfootball_nfl",
    "NBA": "basketball_nba",
    "MLB": "baseball_mlb",
    "NHL": "icehockey_nhl",
    "Soccer": "soccer_epl",
    "NCAAF": "americanfootball_ncaaf",
    "PGA/Golf": "golf_pga",
    "Tennis": "tennis_atp",
    "UFC": "mma_ufc",
}

REGULAR_MARKETS = ("h2h", "spreads", "totals")

MARKET_MAPPING: dict[str, list[str]] = {
    "Moneyline/Spread": ["h2h", "spreads"],
    "Totals (O/U)": ["totals"],
    "Player Props": [
        "player_pass_yds",
        "player_pass_tds",
        "player_pass_completions",
        "player_pass_attempts",
        "player_rush_yds",
        "player_rush_tds",
        "player_rush_attempts",
        "player_receptions",
        "player_reception_yds",
        "player_reception_tds",
        "player_points",
        "player_rebounds",
        "player_assists",
        "player_threes",
        "player_shots_on_goal",
        "player_goals",
        "batter_hits",
        "batter_home_runs",
        "pitcher_strikeouts",
    ],
    "TD Props": [
        "player_pass_tds",
        "player_rush_tds",
        "player_reception_tds",
        "player_anytime_td",
        "player_1st_td",
        "player_last_td",
    ],
    "Team Props": ["team_totals"],
}

BOOKMAKER_MAPPING: dict[str, str] = {
    "DraftKings": "draftkings",
    "FanDuel": "fanduel",
    "MGM": "betmgm",
    "Caesars": "caesars",
    "Bet365": "bet365",
}
BOOKMAKER_TITLES = {key: title for title, key in BOOKMAKER_MAPPING.items()}

# Ordered alternates per primary sportsbook key.
FALLBACK_BOOKS: dict[str, tuple[str, ...]] = {
    "draftkings": ("fanduel", "betmgm", "caesars"),
    "fanduel": ("draftkings", "betmgm", "caesars"),
    "betmgm": ("draftkings", "fanduel", "caesars"),
    "caesars": ("draftkings", "fanduel", "betmgm"),
    "bet365": ("draftkings", "fanduel", "betmgm"),
}

RISK_LEVEL_DEFINITIONS: dict[str, str] = {
    "Low": "High probability to hit, heavy favorites, +200 to +400 odds.",
    "Medium": "Balanced value favorites with moderate props, +400 to +600 odds.",
    "High": "Value underdogs and high-variance outcomes, +600+ odds.",
}

CONFIDENCE_BOUNDS: dict[str, tuple[int, int]] = {
    "Low": (8, 9),
    "Medium": (6, 9),
    "High": (3, 9),
}

AI_MODELS = ("openai", "gemini")


def bookmaker_key(platform: str) -> str:
    """Resolve a display name (``"DraftKings"``) or raw key to the provider key."""

    return BOOKMAKER_MAPPING.get(platform, platform.lower())


def bookmaker_title(key: str) -> str:
    return BOOKMAKER_TITLES.get(key, key)


def markets_for_bet_types(bet_types: Iterable[str]) -> list[str]:
    """Map user-facing bet types to provider market keys, order preserved, no repeats."""

    types = list(bet_types)
    if any(bet_type.lower() == "all" for bet_type in types):
        types = list(MARKET_MAPPING)
    markets: list[str] = []
    for bet_type in types:
        for key in MARKET_MAPPING.get(bet_type, []):
            if key not in markets:
                markets.append(key)
    return markets


def partition_markets(market_keys: Iterable[str]) -> tuple[list[str], list[str]]:
    regular: list[str] = []
    props: list[str] = []
    for key in market_keys:
        (props if key.startswith(PROP_PREFIXES) else regular).append(key)
    return regular, props
