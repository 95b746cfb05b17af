"""Lock parlay normalization tests."""

from __future__ import annotations

from conftest import SAMPLE_CONTENT
from parlaybuilder.parlays.corrector import correct_odds
from parlaybuilder.parlays.lock_parlay import normalize_lock_parlay, pick_lock_legs, remove_lock_sections
from parlaybuilder.parlays.text_format import parse_content
from parlaybuilder.parlays.types import Leg
from parlaybuilder.parlays.validator import validate_content

MAIN_ONLY = SAMPLE_CONTENT[: SAMPLE_CONTENT.index("---")].rstrip()
LOCK_BLOCK = SAMPLE_CONTENT[SAMPLE_CONTENT.index("**🔒") :]


def _lock_bets(text: str) -> list[str]:
    lock = [section for section in parse_content(text).sections if section.kind == "lock"]
    assert len(lock) == 1
    return [leg.bet for leg in lock[0].legs]


def test_single_two_leg_lock_is_kept(sample_content: str) -> None:
    assert normalize_lock_parlay(sample_content) == sample_content


def test_missing_lock_is_appended_and_priced() -> None:
    text = normalize_lock_parlay(MAIN_ONLY)
    assert text.startswith(MAIN_ONLY)
    assert _lock_bets(text) == ["Eagles -7", "Over 47.5"]
    fixed = correct_odds(text)
    lock = fixed.split("**🔒")[1]
    assert "**Combined Odds:** +264" in lock
    assert "**Payout on $100:** $264" in lock
    assert "   Confidence: 8/10" in lock


def test_duplicate_lock_sections_collapse_to_one() -> None:
    text = normalize_lock_parlay(f"{SAMPLE_CONTENT}\n\n---\n\n{LOCK_BLOCK}")
    assert text.count("LOCK PARLAY") == 1
    assert "Bills ML" not in text
    assert _lock_bets(text) == ["Eagles -7", "Over 47.5"]
    assert normalize_lock_parlay(text) == text


def test_three_leg_lock_is_rebuilt() -> None:
    extra = "\n".join(
        [
            "3. 📅 DATE: 10/19/2026",
            "   Game: Bears @ Packers",
            "   Bet: Packers ML",
            "   Odds: +150",
            "",
            "**Combined Odds:** +100",
        ]
    )
    text = SAMPLE_CONTENT.replace("\n\n**Combined Odds:** +100", f"\n\n{extra}")
    assert _lock_bets(normalize_lock_parlay(text)) == ["Eagles -7", "Over 47.5"]


def test_rebuilt_lock_does_not_conflict_with_main_legs() -> None:
    result = validate_content(correct_odds(normalize_lock_parlay(MAIN_ONLY)))
    assert not result.has_conflicts
    assert result.actual_leg_count == 3
    assert result.total_legs_parsed == 5


def test_too_few_main_legs_drops_lock() -> None:
    text = "\n".join(
        [
            "**🎯 1-Leg Parlay: Single**",
            "1. 📅 DATE: 10/19/2026",
            "   Game: Jets @ Bills",
            "   Bet: Bills ML",
            "   Odds: -200",
            "**Combined Odds:** -200",
            "",
            "---",
            "",
            "**🔒 BONUS LOCK PARLAY: Empty**",
            "**Why These Are Locks:** None.",
        ]
    )
    assert normalize_lock_parlay(text) == text.split("\n\n---")[0]


def test_remove_lock_sections_keeps_trailing_text() -> None:
    text = f"{SAMPLE_CONTENT}\nGood luck!"
    cleaned = remove_lock_sections(text)
    assert "LOCK PARLAY" not in cleaned
    assert cleaned.endswith("**Overall Confidence:** 7/10\n\n---\n\nGood luck!")


def test_pick_prefers_priced_then_confident_then_shorter_price() -> None:
    legs = [
        Leg(date="10/19/2026", game="A @ B", bet="B ML", odds="+150", confidence=8),
        Leg(date="10/19/2026", game="C @ D", bet="D ML", odds="-200", confidence=8),
        Leg(date="10/19/2026", game="E @ F", bet="F ML", odds=None, confidence=9),
    ]
    assert [leg.bet for leg in pick_lock_legs(legs)] == ["D ML", "B ML"]
