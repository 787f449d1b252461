from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .enums import MarketType, Sport

SelectionKey = Tuple[str, MarketType, str]


class Selection(BaseModel):
    """A single user-chosen outcome on one market of one match."""

    model_config = ConfigDict(frozen=True)

    match_id: str
    market_type: MarketType
    pick: str
    odds: float = Field(..., gt=0, description="Quoted decimal price at admission time.")
    match_name: str = ""
    sport: Optional[Sport] = None

    @property
    def key(self) -> SelectionKey:
        """Identity key: two selections with the same key are the same pick."""
        return (self.match_id, self.market_type, self.pick)


class CombinationSummary(BaseModel):
    """Parlay combination count and achievable combined-odds range."""

    model_config = ConfigDict(frozen=True)

    count: int = 0
    min_odds: float = 0.0
    max_odds: float = 0.0
