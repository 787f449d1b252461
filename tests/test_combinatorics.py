import math

import pytest

from portfolio_audit.models.enums import MarketType
from portfolio_audit.models.selection import Selection
from portfolio_audit.portfolio.combinatorics import summarize
from portfolio_audit.portfolio.store import PortfolioStore


def _sel(match_id, pick, odds, market=MarketType.WDL):
    return Selection(match_id=match_id, market_type=market, pick=pick, odds=odds)


def test_empty_portfolio_has_no_combinations():
    summary = summarize([])
    assert summary.count == 0
    assert summary.min_odds == 0.0
    assert summary.max_odds == 0.0


def test_same_game_multi_market_scenario():
    store = PortfolioStore()
    store.toggle("f_1001", MarketType.WDL, "home", 1.95)
    store.toggle("f_1001", MarketType.CS, "1:0", 7.5)
    store.toggle("b_2001", MarketType.TOTALS, "over", 1.90)

    summary = store.summary
    assert summary.count == 2
    assert summary.min_odds == 1.95 * 1.90
    assert summary.max_odds == 7.5 * 1.90
    assert summary.min_odds == pytest.approx(3.705)
    assert summary.max_odds == pytest.approx(14.25)


@pytest.mark.parametrize(
    "group_sizes",
    [[1], [3], [2, 2], [1, 2, 3], [4, 1, 1, 2]],
)
def test_count_is_product_of_group_sizes(group_sizes):
    selections = [
        _sel(f"m_{g}", f"pick_{i}", 1.5 + i)
        for g, size in enumerate(group_sizes)
        for i in range(size)
    ]
    assert summarize(selections).count == math.prod(group_sizes)


def test_odds_range_uses_cheapest_and_dearest_per_group():
    selections = [
        _sel("a", "home", 2.0),
        _sel("b", "home", 1.5),
        _sel("a", "1:0", 8.0, MarketType.CS),
        _sel("b", "away", 3.0),
    ]
    summary = summarize(selections)
    assert summary.count == 4
    assert summary.min_odds == 2.0 * 1.5
    assert summary.max_odds == 8.0 * 3.0
