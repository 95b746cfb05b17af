"""Prompt text for parlay generation."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from zoneinfo import ZoneInfo

from parlaybuilder.config import get_settings
from parlaybuilder.data.catalog import CONFIDENCE_BOUNDS, RISK_LEVEL_DEFINITIONS
from parlaybuilder.parlays.types import Game, GenerationRequest, Market

SYSTEM_PROMPT = (
    "You are an expert sports betting analyst who uses research data and odds analysis "
    "to build informed parlays."
)

CONFLICT_RULES = (
    "NO same team moneyline + spread in one game (e.g. Giants ML + Giants -3.5)",
    "NO opposing moneyline or spread sides in one game (e.g. Cowboys +3.5 + Eagles -3.5)",
    "NO over and under on the same game total (e.g. Over 45.5 + Under 45.5)",
    "NO over and under on the same player prop",
    "NO exact duplicate bets",
)


def _signed(value: float | int) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"+{value}" if value > 0 else str(value)


def _format_date(moment: datetime) -> str:
    return f"{moment.month}/{moment.day}/{moment.year}"


def describe_market(market: Market) -> str:
    outcomes = market.outcomes
    if market.key == "h2h":
        return "ML: " + ", ".join(f"{o.name} {_signed(o.price)}" for o in outcomes)
    if market.key == "spreads":
        return "Spread: " + ", ".join(
            f"{o.name} {_signed(o.point or 0)} ({_signed(o.price)})" for o in outcomes
        )
    if market.key == "totals":
        return "Total: " + ", ".join(f"{o.name} {o.point} ({_signed(o.price)})" for o in outcomes)
    if market.is_prop:
        samples = []
        for o in outcomes[:4]:
            words = [o.description, o.name, None if o.point is None else str(o.point)]
            samples.append(" ".join(w for w in words if w) + f" ({_signed(o.price)})")
        return f"{market.key}: {', '.join(samples)}" if samples else f"{market.key}: no options"
    return f"{market.key}: {len(outcomes)} options"


def format_odds_context(games: Sequence[Game], limit: int, tz_name: str = "UTC") -> str:
    zone = ZoneInfo(tz_name)
    if not games:
        return "NO LIVE ODDS DATA AVAILABLE"
    blocks = []
    for idx, game in enumerate(games[:limit], start=1):
        markets = " | ".join(describe_market(m) for m in game.markets) or "no-odds"
        blocks.append(f"{idx}. DATE: {_format_date(game.commence_time.astimezone(zone))} - {game.label}\n   {markets}")
    return "AVAILABLE GAMES & ODDS\n" + "\n\n".join(blocks)


def _leg_template(number: int) -> str:
    return (
        f"{number}. 📅 DATE: MM/DD/YYYY\n"
        "   Game: Away Team @ Home Team\n"
        "   Bet: Specific bet with line\n"
        "   Odds: [Exact odds]\n"
        "   Confidence: X/10\n"
        "   Reasoning: Why this will hit (cite research data)"
    )


def output_format(num_legs: int) -> str:
    return "\n".join(
        [
            f"**🎯 {num_legs}-Leg Parlay: [Title]**",
            "",
            "**Legs:**",
            _leg_template(1),
            "",
            _leg_template(2),
            "",
            f"[Continue for {num_legs} total legs]",
            "",
            "**Combined Odds:** [WILL BE CALCULATED AUTOMATICALLY]",
            "**Payout on $100:** $[WILL BE CALCULATED AUTOMATICALLY]",
            "",
            "---",
            "",
            "**🔒 BONUS LOCK PARLAY: [Title]**",
            "",
            "**Legs:**",
            "[Same format, exactly 2 safer picks based on research and odds]",
            "",
            "**Combined Odds:** [WILL BE CALCULATED AUTOMATICALLY]",
            "**Payout on $100:** $[WILL BE CALCULATED AUTOMATICALLY]",
            "**Why These Are Locks:** [Brief data backed explanation citing research]",
        ]
    )


def build_prompt(
    request: GenerationRequest,
    games: Sequence[Game],
    research_note: str,
    attempt: int,
    *,
    today: date,
    max_games: int | None = None,
) -> str:
    """Assemble the generation prompt; no I/O, same inputs give the same text."""

    settings = get_settings()
    limit = max_games or settings.prompt_max_games
    low, high = CONFIDENCE_BOUNDS.get(request.risk_level, (1, 10))
    risk_definition = RISK_LEVEL_DEFINITIONS.get(request.risk_level, "")
    sports = ", ".join(request.selected_sports)
    bet_types = ", ".join(request.selected_bet_types)
    rules = "\n".join(f"- {rule}" for rule in CONFLICT_RULES)

    parts = []
    if attempt > 1:
        parts.append(
            f"RETRY {attempt}: the previous response was rejected. Fix these issues:\n"
            f"{request.feedback or 'Leg count did not match the request.'}"
        )
    parts.append(
        f"PARLAY REQUEST:\n"
        f"- Create exactly {request.num_legs} legs\n"
        f"- Sports: {sports}\n"
        f"- Bet types: {bet_types}\n"
        f"- Risk level: {request.risk_level} ({risk_definition})\n"
        f"- Time window: Next {request.date_range} day(s)\n"
        f"- Today: {today:%m/%d/%Y}"
    )
    parts.append(
        "ANALYSIS REQUIREMENTS:\n"
        "1. USE ONLY THE PROVIDED ODDS DATA BELOW\n"
        "2. USE ONLY THE ACTUAL ODDS PROVIDED\n"
        "3. Use each game's own date; never relabel a game with today's date\n"
        f"4. Every leg's confidence must be between {low}/10 and {high}/10 for {request.risk_level} risk\n"
        "5. Reference research insights in reasoning when available"
    )
    parts.append(f"CONFLICT PREVENTION RULES:\n{rules}")
    parts.append(format_odds_context(games, limit, settings.display_timezone))
    if research_note:
        parts.append(f"RESEARCH:\n{research_note}")
    parts.append(f"OUTPUT FORMAT - Follow this EXACT structure:\n\n{output_format(request.num_legs)}")
    parts.append(f"The main parlay MUST contain exactly {request.num_legs} legs.")
    if request.ai_model == "gemini":
        parts.append(
            "FINAL CHECK:\n"
            f"1. COUNT CHECK: the main parlay has exactly {request.num_legs} numbered legs\n"
            "2. No conflicting bets from the rules above\n"
            "3. Follow the exact format above"
        )
    return "\n\n".join(parts)
