import math

import pytest

from portfolio_audit.models.enums import MarketType, Sport
from portfolio_audit.portfolio.store import PortfolioStore

WDL, CS, TOTALS = MarketType.WDL, MarketType.CS, MarketType.TOTALS


def test_toggle_adds_then_removes():
    store = PortfolioStore()
    state = store.toggle("f_1001", WDL, "home", 1.95, match_name="A vs B", sport=Sport.FOOTBALL)
    assert len(state) == 1
    assert state[0].match_name == "A vs B"
    assert state[0].sport == Sport.FOOTBALL

    state = store.toggle("f_1001", WDL, "home", 1.95)
    assert state == ()


def test_toggle_is_its_own_inverse():
    store = PortfolioStore()
    store.toggle("f_1001", WDL, "home", 1.95)
    store.toggle("b_2001", TOTALS, "over", 1.90)
    before = store.selections

    store.toggle("f_1001", CS, "1:0", 7.5)
    store.toggle("f_1001", CS, "1:0", 7.5)
    assert store.selections == before


def test_identity_keys_stay_unique():
    store = PortfolioStore()
    store.toggle("f_1001", WDL, "home", 1.95)
    store.toggle("f_1001", WDL, "draw", 3.5)
    store.toggle("f_1001", CS, "1:0", 7.5)
    store.toggle("f_1001", WDL, "home", 1.95)
    store.toggle("f_1001", WDL, "home", 2.05)

    keys = [s.key for s in store.selections]
    assert len(keys) == len(set(keys))
    assert len(store) == 3
    # same match and market, different picks
    assert ("f_1001", WDL, "draw") in store


@pytest.mark.parametrize("odds", [None, 0, 0.0, -1.2, math.nan, math.inf, "1.9", True])
def test_toggle_without_valid_odds_is_a_no_op(odds):
    store = PortfolioStore()
    store.toggle("f_1001", WDL, "home", 1.95)
    version = store.version

    store.toggle("f_1001", CS, "1:0", odds)
    store.toggle("f_1001", WDL, "home", odds)

    assert [s.key for s in store.selections] == [("f_1001", WDL, "home")]
    assert store.version == version


def test_remove_and_clear():
    store = PortfolioStore()
    store.toggle("f_1001", WDL, "home", 1.95)
    store.toggle("b_2001", TOTALS, "over", 1.90)

    assert store.remove("f_1001", WDL, "home") is True
    assert store.remove("f_1001", WDL, "home") is False
    assert len(store) == 1

    store.clear()
    assert store.selections == ()
    assert store.summary.count == 0


def test_grouped_by_match_preserves_first_seen_order():
    store = PortfolioStore()
    store.toggle("b_2001", TOTALS, "over", 1.90)
    store.toggle("f_1001", CS, "1:0", 7.5)
    store.toggle("b_2001", WDL, "home", 2.35)
    store.toggle("f_1001", WDL, "home", 1.95)

    groups = store.grouped_by_match()
    assert list(groups) == ["b_2001", "f_1001"]
    assert [s.pick for s in groups["b_2001"]] == ["over", "home"]
    assert [s.pick for s in groups["f_1001"]] == ["1:0", "home"]


def test_every_mutation_notifies_listeners_and_recomputes_summary():
    store = PortfolioStore()
    versions = []
    store.subscribe(versions.append)

    store.toggle("f_1001", WDL, "home", 1.95)
    assert store.summary.count == 1
    store.toggle("f_1001", CS, "1:0", 7.5)
    assert store.summary.count == 2
    store.remove("f_1001", CS, "1:0")
    store.clear()
    store.clear()  # nothing left to clear

    assert versions == [1, 2, 3, 4]
    assert store.version == 4


def test_market_type_given_as_plain_string():
    store = PortfolioStore()
    assert store.toggle("f_1001", "WDL", "home", None) == ()
    assert store.version == 0

    [selection] = store.toggle("f_1001", "WDL", "home", 1.95)
    assert selection.key == ("f_1001", WDL, "home")
    assert store.remove("f_1001", "WDL", "home") is True
