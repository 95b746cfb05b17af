"""Prompt rendering tests."""

from __future__ import annotations

from datetime import date

from conftest import make_game
from parlaybuilder.agents import prompt_builder
from parlaybuilder.parlays.types import GenerationRequest, Market, Outcome

TODAY = date(2026, 10, 19)


def _request(**overrides) -> GenerationRequest:
    values = dict(
        selected_sports=("NFL",),
        selected_bet_types=("Moneyline/Spread",),
        num_legs=5,
        risk_level="Low",
        odds_platform="DraftKings",
    )
    values.update(overrides)
    return GenerationRequest(**values)


def test_prompt_repeats_leg_count_and_risk_bounds() -> None:
    prompt = prompt_builder.build_prompt(_request(), [make_game("a")], "", 1, today=TODAY)
    assert "Create exactly 5 legs" in prompt
    assert "MUST contain exactly 5 legs" in prompt
    assert "between 8/10 and 9/10" in prompt
    assert "**🎯 5-Leg Parlay: [Title]**" in prompt
    assert "**🔒 BONUS LOCK PARLAY: [Title]**" in prompt
    assert "RETRY" not in prompt


def test_prompt_lists_every_conflict_rule() -> None:
    prompt = prompt_builder.build_prompt(_request(), [], "", 1, today=TODAY)
    for rule in prompt_builder.CONFLICT_RULES:
        assert rule in prompt
    assert "NO LIVE ODDS DATA AVAILABLE" in prompt


def test_prompt_is_deterministic() -> None:
    games = [make_game("a", markets=3)]
    first = prompt_builder.build_prompt(_request(), games, "note", 1, today=TODAY)
    assert prompt_builder.build_prompt(_request(), games, "note", 1, today=TODAY) == first


def test_retry_prompt_carries_feedback() -> None:
    request = _request().next_attempt("You produced 4 legs in the main parlay; exactly 5 are required.")
    prompt = prompt_builder.build_prompt(request, [], "", request.attempt, today=TODAY)
    assert prompt.startswith("RETRY 2:")
    assert "You produced 4 legs" in prompt


def test_gemini_gets_final_count_check() -> None:
    prompt = prompt_builder.build_prompt(_request(ai_model="gemini"), [], "", 1, today=TODAY)
    assert "COUNT CHECK" in prompt
    assert "COUNT CHECK" not in prompt_builder.build_prompt(_request(), [], "", 1, today=TODAY)


def test_odds_context_is_capped() -> None:
    games = [make_game(f"g{i}", home=f"Home{i}") for i in range(15)]
    prompt = prompt_builder.build_prompt(_request(), games, "", 1, today=TODAY, max_games=10)
    assert "Home9" in prompt
    assert "Home10" not in prompt


def test_describe_market_formats_lines() -> None:
    game = make_game("a", markets=3)
    described = [prompt_builder.describe_market(m) for m in game.markets]
    assert described[0] == "ML: Eagles -110"
    assert described[1] == "Spread: Eagles -3.5 (-110)"
    assert described[2] == "Total: Eagles -3.5 (-110)"


def test_research_note_included() -> None:
    prompt = prompt_builder.build_prompt(_request(), [], "10/19/2026 - Giants @ Eagles", 1, today=TODAY)
    assert "RESEARCH:\n10/19/2026 - Giants @ Eagles" in prompt


def test_prop_markets_show_samples() -> None:
    market = Market(
        key="player_points",
        outcomes=[Outcome(name="Over", price=-115, point=27.5, description="Jalen Brunson")],
    )
    assert prompt_builder.describe_market(market) == "player_points: Jalen Brunson Over 27.5 (-115)"
    assert prompt_builder.describe_market(Market(key="alternate_spreads", outcomes=[])) == "alternate_spreads: 0 options"
