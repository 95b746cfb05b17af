"""End-to-end pipeline tests with fake collaborators."""

from __future__ import annotations

import pytest

from dataclasses import replace

from conftest import NOW, SAMPLE_CONTENT, leg_block, make_game
from parlaybuilder.agents.generation import GenerationLoop
from parlaybuilder.errors import GenerationError, UpstreamUnavailable
from parlaybuilder.parlays.types import GenerationRequest, OddsResult
from parlaybuilder.pipeline import coordinator
from parlaybuilder.research.enricher import ResearchEnricher


class FakeOddsSource:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error

    def fetch_odds(self, request):
        if self.error:
            raise self.error
        return self.result


class FakeSearch:
    def search(self, query: str) -> dict:
        return {"organic": [{"title": "Report", "snippet": "Key player questionable"}]}


class FakeGenerator:
    def __init__(self, content: str) -> None:
        self.content = content
        self.prompts: list[str] = []

    def generate(self, prompt: str, model_id: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.content, Exception):
            raise self.content
        return self.content


def _request(bet_types=("Moneyline/Spread",)) -> GenerationRequest:
    return GenerationRequest(
        selected_sports=("NFL",),
        selected_bet_types=bet_types,
        num_legs=3,
        risk_level="Medium",
        odds_platform="DraftKings",
    )


def _odds() -> OddsResult:
    games = [make_game("g1", markets=3), make_game("g2", markets=3, home="Packers", away="Bears")]
    return OddsResult(
        games=games,
        source="DraftKings + FanDuel",
        fallback_used=True,
        fallback_reason="Insufficient games in primary book",
        data_quality=100,
        books_tried=["draftkings", "fanduel"],
    )


def _coordinator(generator, odds_source=None, search=None, events=None):
    return coordinator.Coordinator(
        odds_source=odds_source or FakeOddsSource(_odds()),
        enricher=ResearchEnricher(search, clock=lambda: NOW),
        generation_loop=GenerationLoop(generator, max_attempts=2),
        observers=[events.append] if events is not None else [],
        clock=lambda: NOW,
        timezone_name="America/Denver",
    )


def test_pipeline_corrects_validates_and_reports() -> None:
    events: list = []
    generator = FakeGenerator(SAMPLE_CONTENT)
    result = _coordinator(generator, search=FakeSearch(), events=events).generate(_request())

    assert "**Combined Odds:** +811" in result.content
    assert "**Payout on $100:** $811" in result.content
    meta = result.metadata
    assert meta.odds_source == "DraftKings + FanDuel"
    assert meta.fallback_used
    assert meta.researched_games == 2
    assert meta.total_games == 2
    assert meta.attempts == 1
    assert meta.generation_state == "satisfied"
    assert meta.validation.actual_leg_count == 3
    assert not meta.validation.wrong_dates
    assert set(meta.timings) == {"odds", "research", "filter", "generation", "lock", "correction", "validation"}
    completed = [e.phase for e in events if e.status == "completed"]
    assert completed == ["odds", "research", "filter", "generation", "lock", "correction", "validation"]


def test_prompt_only_sees_selected_markets() -> None:
    generator = FakeGenerator(SAMPLE_CONTENT)
    _coordinator(generator).generate(_request(bet_types=("Totals (O/U)",)))
    assert "Total: Eagles" in generator.prompts[0]
    assert "ML: Eagles" not in generator.prompts[0]


def test_empty_filter_falls_back_to_unfiltered_games() -> None:
    generator = FakeGenerator(SAMPLE_CONTENT)
    _coordinator(generator).generate(_request(bet_types=("Player Props",)))
    assert "ML: Eagles" in generator.prompts[0]


def test_exhausted_generation_is_best_effort() -> None:
    generator = FakeGenerator(leg_block(2))
    result = _coordinator(generator).generate(_request(bet_types=("ALL",)))
    assert result.metadata.generation_state == "exhausted"
    assert result.metadata.attempts == 2
    assert len(generator.prompts) == 2


def test_odds_outage_propagates_with_failed_event() -> None:
    events: list = []
    source = FakeOddsSource(error=UpstreamUnavailable("all books down"))
    with pytest.raises(UpstreamUnavailable):
        _coordinator(FakeGenerator(SAMPLE_CONTENT), odds_source=source, events=events).generate(_request())
    assert (events[-1].phase, events[-1].status) == ("odds", "failed")


def test_generation_error_propagates() -> None:
    with pytest.raises(GenerationError):
        _coordinator(FakeGenerator(GenerationError("no key"))).generate(_request())


def test_filter_markets_by_bet_types() -> None:
    games = [make_game("a", markets=3), make_game("b", markets=1)]
    filtered = coordinator.filter_markets_by_bet_types(games, ["Totals (O/U)"])
    assert [g.id for g in filtered] == ["a"]
    assert [m.key for m in filtered[0].markets] == ["totals"]
    assert len(games[0].markets) == 3
    assert coordinator.filter_markets_by_bet_types(games, ["ALL"]) == games


def test_missing_lock_is_built_from_main_legs() -> None:
    generator = FakeGenerator(leg_block(3))
    result = _coordinator(generator).generate(_request())
    assert result.content.count("LOCK PARLAY") == 1
    assert "**🔒 BONUS LOCK PARLAY: Two High-Confidence Picks**" in result.content
    lock = result.content.split("**🔒")[1]
    assert "**Combined Odds:** +264" in lock
    assert "**Payout on $100:** $264" in lock
    assert not result.metadata.validation.has_conflicts


def test_expanded_markets_reach_prompt_and_add_notice() -> None:
    odds = replace(_odds(), market_expanded=True, bet_types=("Moneyline/Spread", "Player Props"))
    generator = FakeGenerator(SAMPLE_CONTENT)
    result = _coordinator(generator, odds_source=FakeOddsSource(odds)).generate(_request())
    assert "Bet types: Moneyline/Spread, Player Props" in generator.prompts[0]
    assert "⚠️ **SAME-GAME PARLAY NOTICE**" in result.content
    assert "(2 games)" in result.content
    assert result.metadata.market_expanded
    assert result.metadata.validation.actual_leg_count == 3


def test_no_notice_without_expansion() -> None:
    result = _coordinator(FakeGenerator(SAMPLE_CONTENT)).generate(_request())
    assert "SAME-GAME PARLAY NOTICE" not in result.content
    assert not result.metadata.market_expanded
