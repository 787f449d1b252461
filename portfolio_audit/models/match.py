from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .enums import MarketType, Sport

# Pick labels understood for the fixed-outcome markets
HOME, DRAW, AWAY = "home", "draw", "away"
OVER, UNDER = "over", "under"


def _to_optional_str(value: Any) -> Any:
    # Providers emit handicap/total lines both as "-0.5" and -0.5
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class _Quote(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")


class MarketOdds(_Quote):
    """One rung of a ladder market (correct score, total goals)."""

    label: str
    value: Optional[str] = None
    odds: Optional[float] = None

    def matches_pick(self, pick: str) -> bool:
        return pick == self.label or (self.value is not None and pick == self.value)


class ThreeWayOdds(_Quote):
    """Home / draw / away prices. ``d`` is 0 for markets without a draw."""

    h: Optional[float] = None
    d: Optional[float] = None
    a: Optional[float] = None
    handicap: Optional[str] = None

    @field_validator("handicap", mode="before")
    @classmethod
    def _coerce_line(cls, value: Any) -> Any:
        return _to_optional_str(value)


class TotalsOdds(_Quote):
    over: Optional[float] = None
    under: Optional[float] = None


class InternationalOdds(_Quote):
    wdl: Optional[ThreeWayOdds] = None
    wdhl: Optional[ThreeWayOdds] = None
    total_goals: List[MarketOdds] = Field(default_factory=list)
    totals_odds: Optional[TotalsOdds] = None
    kelly_index: Optional[ThreeWayOdds] = None
    trend: Optional[str] = None


class Markets(_Quote):
    correct_score: List[MarketOdds] = Field(default_factory=list)
    handicap: Optional[str] = None
    totals: Optional[str] = None

    @field_validator("handicap", "totals", mode="before")
    @classmethod
    def _coerce_line(cls, value: Any) -> Any:
        return _to_optional_str(value)


class LeagueRank(_Quote):
    home: Optional[int] = None
    away: Optional[int] = None


class Injury(_Quote):
    player: Optional[str] = None
    status: Optional[str] = None
    importance: Optional[str] = None


class RecentForm(_Quote):
    home: Optional[str] = None
    away: Optional[str] = None


class MatchStats(_Quote):
    home_off_rating: Optional[float] = None
    away_def_rating: Optional[float] = None
    goal_avg_home: Optional[float] = None
    goal_avg_away: Optional[float] = None


class MatchContext(_Quote):
    """Market quotations and ancillary signals for a fixture."""

    markets: Markets
    league_rank: LeagueRank
    international_odds: InternationalOdds = Field(default_factory=InternationalOdds)
    injuries: List[Injury] = Field(default_factory=list)
    recent_form: Optional[RecentForm] = None
    stats: Optional[MatchStats] = None
    motivation_level: Optional[str] = None
    news_sentiment: Optional[str] = None


class Match(BaseModel):
    """A sporting fixture as published in a catalog snapshot."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: str = Field(..., min_length=1)
    sport: Sport
    home_team: str = Field(..., alias="homeTeam", min_length=1)
    away_team: str = Field(..., alias="awayTeam", min_length=1)
    league: str = Field(..., min_length=1)
    start_time: str = Field(..., alias="startTime", min_length=1)
    match_context: MatchContext

    @computed_field  # type: ignore[misc]
    @property
    def match_name(self) -> str:
        """Display name used on selections and audit requests."""
        return f"{self.home_team} vs {self.away_team}"

    def odds_for(self, market_type: MarketType, pick: str) -> Optional[float]:
        """Return the quoted price for ``pick`` on ``market_type``, if any."""
        ctx = self.match_context
        intl = ctx.international_odds

        if market_type in (MarketType.WDL, MarketType.WDHL):
            three_way = intl.wdl if market_type == MarketType.WDL else intl.wdhl
            if three_way is None:
                return None
            return {HOME: three_way.h, DRAW: three_way.d, AWAY: three_way.a}.get(pick)

        if market_type == MarketType.TOTALS:
            if intl.totals_odds is None:
                return None
            return {OVER: intl.totals_odds.over, UNDER: intl.totals_odds.under}.get(pick)

        ladder = ctx.markets.correct_score if market_type == MarketType.CS else intl.total_goals
        for rung in ladder:
            if rung.matches_pick(pick):
                return rung.odds
        return None
