from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional, Tuple

from portfolio_audit.models.enums import SourceKind, Sport

OFFICIAL_PROMPT = """
Search for the latest real-time China Sports Lottery matches and odds for {as_of_date}.
Primary source: the official sporttery.cn lottery centre.

Instructions:
1. Fetch exactly {count} active matches currently open for betting ({sport_scope}).
2. Prioritize high-liquidity leagues (Premier League, NBA, UCL, etc.).
3. For football: include WDL odds (international_odds.wdl h/d/a), handicap WDL
   (international_odds.wdhl with its handicap), the total goals ladder
   (international_odds.total_goals) and the 15 most common correct score odds
   (match_context.markets.correct_score).
4. For basketball: include the point spread (markets.handicap, international_odds.wdhl)
   and total points (markets.totals, international_odds.totals_odds over/under).
5. League names MUST include the official lottery ID prefix (e.g. "Fri 001").

Every object must have: id, sport (FOOTBALL or BASKETBALL), homeTeam, awayTeam,
league, startTime and match_context with at least "markets" and "league_rank".
Return a strictly valid JSON array of match objects and nothing else.
"""

AGGREGATE_PROMPT = """
Official sources are slow. Search any reputable sports aggregate source (500.com,
OKOOO, Scoreway) for the China Sports Lottery matches and real-time odds open on
{as_of_date}.

Requirements remain the same: {count} matches ({sport_scope}), WDL / handicap /
total goals / correct score for football, point spread and total points for
basketball, league names prefixed with the lottery ID (e.g. "Sat 002").

Every object must have: id, sport (FOOTBALL or BASKETBALL), homeTeam, awayTeam,
league, startTime and match_context with at least "markets" and "league_rank".
Return a strictly valid JSON array of match objects and nothing else.
"""

INTERNATIONAL_PROMPT = """
Search international bookmaker odds comparison sites for today's ({as_of_date})
top football and basketball fixtures.

Fetch exactly {count} fixtures ({sport_scope}) with average European odds: WDL
(international_odds.wdl), Asian handicap (international_odds.wdhl), over/under
(international_odds.totals_odds), correct score where available, plus injuries,
recent form, league ranks and news sentiment.

Every object must have: id, sport (FOOTBALL or BASKETBALL), homeTeam, awayTeam,
league, startTime and match_context with at least "markets" and "league_rank".
Return a strictly valid JSON array of match objects and nothing else.
"""


@dataclass(frozen=True)
class CatalogRequest:
    """What a provider is asked for: the trading day and the sports in scope."""

    as_of_date: date
    sport_scope: Tuple[Sport, ...] = (Sport.FOOTBALL, Sport.BASKETBALL)

    @property
    def scope_label(self) -> str:
        return " and ".join(s.value.lower() for s in self.sport_scope)


@dataclass(frozen=True)
class ProviderConfig:
    """One match source provider."""

    name: str
    prompt_template: str
    status_message: str
    use_search: bool = True
    model: Optional[str] = None  # Defaults to settings.catalog_model

    def render_prompt(self, request: CatalogRequest, count: int) -> str:
        return self.prompt_template.format(
            as_of_date=request.as_of_date.isoformat(),
            sport_scope=request.scope_label,
            count=count,
        ).strip()


@dataclass(frozen=True)
class ProviderPlan:
    """Primary provider and optional sequential fallback for a source kind."""

    primary: ProviderConfig
    fallback: Optional[ProviderConfig] = None


OFFICIAL_PROVIDER = ProviderConfig(
    name="official",
    prompt_template=OFFICIAL_PROMPT,
    status_message="Contacting the official lottery data centre...",
)

AGGREGATE_PROVIDER = ProviderConfig(
    name="aggregate",
    prompt_template=AGGREGATE_PROMPT,
    status_message="Contacting backup aggregate odds centre...",
)

INTERNATIONAL_PROVIDER = ProviderConfig(
    name="international",
    prompt_template=INTERNATIONAL_PROMPT,
    status_message="Contacting international odds comparison sources...",
)

DEFAULT_PLANS: Dict[SourceKind, ProviderPlan] = {
    SourceKind.PRIMARY_OFFICIAL: ProviderPlan(
        primary=OFFICIAL_PROVIDER, fallback=AGGREGATE_PROVIDER
    ),
    SourceKind.SECONDARY_INTERNATIONAL: ProviderPlan(primary=INTERNATIONAL_PROVIDER),
}
