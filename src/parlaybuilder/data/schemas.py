"""Pydantic schemas for odds and search provider responses."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from parlaybuilder.parlays.types import Bookmaker, Game, Market, Outcome


class OutcomeSchema(BaseModel):
    name: str
    price: int
    point: float | None = None
    description: str | None = None

    @field_validator("price", mode="before")
    @classmethod
    def _round_price(cls, value: object) -> object:
        if isinstance(value, float):
            return int(round(value))
        return value


class MarketSchema(BaseModel):
    key: str
    outcomes: list[OutcomeSchema] = Field(default_factory=list)


class BookmakerSchema(BaseModel):
    key: str
    title: str = ""
    markets: list[MarketSchema] = Field(default_factory=list)


class OddsEventSchema(BaseModel):
    """One event from The Odds API ``/sports/{sport}/odds`` endpoint."""

    id: str
    sport_key: str = ""
    commence_time: datetime
    home_team: str
    away_team: str
    bookmakers: list[BookmakerSchema] = Field(default_factory=list)

    @field_validator("commence_time")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def to_game(self) -> Game:
        return Game(
            id=self.id,
            commence_time=self.commence_time,
            home_team=self.home_team,
            away_team=self.away_team,
            sport_key=self.sport_key,
            bookmakers=[
                Bookmaker(
                    key=book.key,
                    title=book.title or book.key,
                    markets=[
                        Market(
                            key=market.key,
                            outcomes=[Outcome(**outcome.model_dump()) for outcome in market.outcomes],
                        )
                        for market in book.markets
                    ],
                )
                for book in self.bookmakers
            ],
        )


class SearchResultSchema(BaseModel):
    title: str = ""
    snippet: str = ""
    link: str = ""


class SearchResponseSchema(BaseModel):
    organic: list[SearchResultSchema] = Field(default_factory=list)
