"""Odds conversion and parlay arithmetic tests."""

from __future__ import annotations

import pytest

from parlaybuilder.errors import InvalidOddsFormat
from parlaybuilder.parlays import odds_math


def test_two_leg_standard_juice() -> None:
    quote = odds_math.combine_parlay(["-110", "-110"])
    assert quote.combined_decimal == pytest.approx(3.645, abs=0.001)
    assert quote.combined_american == "+264"
    assert quote.payout == 264
    assert quote.total_return == 364


def test_single_leg_is_identity() -> None:
    assert odds_math.combine_parlay(["+150"]).combined_american == "+150"
    assert odds_math.combine_parlay([-200]).combined_american == "-200"


def test_payout_uses_unit_stake() -> None:
    assert odds_math.combine_parlay(["+150"], unit_stake=10).payout == 15


def test_decimal_always_above_one() -> None:
    for odds in list(range(-10000, -100, 37)) + list(range(100, 10001, 37)):
        assert odds_math.american_to_decimal(odds) > 1


def test_round_trip_drift_is_bounded() -> None:
    for odds in list(range(-1000, -100, 7)) + list(range(100, 1001, 7)):
        back = int(odds_math.decimal_to_american(odds_math.american_to_decimal(odds)))
        assert abs(back - odds) <= 1


def test_round_trip_exact_for_multiples_of_five() -> None:
    for odds in (-500, -250, -115, -105, 100, 105, 120, 250, 1000):
        back = odds_math.decimal_to_american(odds_math.american_to_decimal(odds))
        assert int(back) == odds


@pytest.mark.parametrize("token", ["EV", "even", "PK", "Pick", "PICKEM"])
def test_even_money_tokens(token: str) -> None:
    assert odds_math.normalize_american(token) == "+100"


def test_normalize_rejects_unsigned() -> None:
    assert odds_math.normalize_american("150") is None
    assert odds_math.normalize_american("-115 (alt)") == "-115"


@pytest.mark.parametrize("bad", ["abc", "50", "-99", True])
def test_invalid_american_odds(bad) -> None:
    with pytest.raises(InvalidOddsFormat):
        odds_math.american_to_decimal(bad)


def test_empty_parlay_rejected() -> None:
    with pytest.raises(InvalidOddsFormat):
        odds_math.combine_parlay([])


def test_implied_probability() -> None:
    assert odds_math.implied_probability(-110) == pytest.approx(0.5238, abs=1e-4)
    assert odds_math.implied_probability("+100") == pytest.approx(0.5)
