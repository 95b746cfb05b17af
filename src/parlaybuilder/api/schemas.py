"""Pydantic schemas for the parlay builder API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from parlaybuilder.data.catalog import BOOKMAKER_MAPPING, MARKET_MAPPING, SPORT_SLUGS
from parlaybuilder.parlays.types import GenerationRequest, PipelineResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateParlayRequest(CamelModel):
    selected_sports: list[str] = Field(min_length=1)
    selected_bet_types: list[str] = Field(min_length=1)
    num_legs: int = Field(ge=1, le=10)
    risk_level: Literal["Low", "Medium", "High"]
    odds_platform: str = "DraftKings"
    ai_model: Literal["openai", "gemini"] = "openai"
    date_range: int = Field(default=1, ge=1, le=7)

    @field_validator("selected_sports")
    @classmethod
    def _known_sports(cls, value: list[str]) -> list[str]:
        unknown = [sport for sport in value if sport not in SPORT_SLUGS]
        if unknown:
            raise ValueError(f"Unsupported sports: {', '.join(unknown)}")
        return value

    @field_validator("selected_bet_types")
    @classmethod
    def _known_bet_types(cls, value: list[str]) -> list[str]:
        unknown = [bt for bt in value if bt not in MARKET_MAPPING and bt.upper() != "ALL"]
        if unknown:
            raise ValueError(f"Unsupported bet types: {', '.join(unknown)}")
        return value

    @field_validator("odds_platform")
    @classmethod
    def _known_platform(cls, value: str) -> str:
        if value not in BOOKMAKER_MAPPING:
            raise ValueError(f"Unsupported sportsbook: {value}")
        return value

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            selected_sports=tuple(self.selected_sports),
            selected_bet_types=tuple(self.selected_bet_types),
            num_legs=self.num_legs,
            risk_level=self.risk_level,
            odds_platform=self.odds_platform,
            ai_model=self.ai_model,
            date_range=self.date_range,
        )


class ConflictOut(CamelModel):
    game: str
    bet1: str
    bet2: str
    rule: str


class ValidationOut(CamelModel):
    actual_leg_count: int
    has_conflicts: bool
    unique_games_count: int
    total_legs_parsed: int
    wrong_dates: bool
    conflicts: list[ConflictOut] = Field(default_factory=list)


class MetadataOut(CamelModel):
    odds_source: str
    fallback_used: bool
    fallback_reason: str | None = None
    data_quality: int
    researched_games: int
    total_games: int
    ai_model: str
    warning: str | None = None
    market_expanded: bool = False
    attempts: int
    generation_state: str
    validation: ValidationOut | None = None
    timings: dict[str, int] = Field(default_factory=dict)


class GenerateParlayResponse(CamelModel):
    content: str
    metadata: MetadataOut

    @classmethod
    def from_result(cls, result: PipelineResult) -> "GenerateParlayResponse":
        meta = result.metadata
        validation = None
        if meta.validation is not None:
            v = meta.validation
            validation = ValidationOut(
                actual_leg_count=v.actual_leg_count,
                has_conflicts=v.has_conflicts,
                unique_games_count=v.unique_games_count,
                total_legs_parsed=v.total_legs_parsed,
                wrong_dates=v.wrong_dates,
                conflicts=[ConflictOut(game=c.game, bet1=c.bet1, bet2=c.bet2, rule=c.rule) for c in v.conflicts],
            )
        return cls(
            content=result.content,
            metadata=MetadataOut(
                odds_source=meta.odds_source,
                fallback_used=meta.fallback_used,
                fallback_reason=meta.fallback_reason,
                data_quality=meta.data_quality,
                researched_games=meta.researched_games,
                total_games=meta.total_games,
                ai_model=meta.ai_model,
                warning=meta.warning,
                market_expanded=meta.market_expanded,
                attempts=meta.attempts,
                generation_state=meta.generation_state,
                validation=validation,
                timings=meta.timings,
            ),
        )


class HealthResponse(BaseModel):
    status: str
    version: str
    providers: dict[str, Any]
