"""Shared fixtures: raw match payloads, a static catalog, and fake collaborators."""

import asyncio
import copy
from datetime import date
from typing import Any, Dict, List, Optional

import pytest

from portfolio_audit.catalog.static_catalog import load_static_catalog
from portfolio_audit.config.settings import AppSettings

TODAY = date(2026, 10, 19)

RAW_FOOTBALL_MATCH: Dict[str, Any] = {
    "id": "f_3001",
    "sport": "FOOTBALL",
    "homeTeam": "Arsenal",
    "awayTeam": "Liverpool",
    "league": "Premier League (003)",
    "startTime": "10-19 21:00",
    "match_context": {
        "international_odds": {
            "wdl": {"h": 2.4, "d": 3.3, "a": 2.9},
            "total_goals": [{"label": "2", "value": "2", "odds": 3.2}],
        },
        "markets": {
            "correct_score": [{"label": "1:1", "value": "1-1", "odds": 6.5}],
            "handicap": -0.5,
        },
        "league_rank": {"home": 2, "away": 1},
        "motivation_level": "High",
    },
}


@pytest.fixture
def raw_match():
    """Factory for provider-shaped match dicts."""

    def _make(match_id: str = "f_3001", **overrides: Any) -> Dict[str, Any]:
        raw = copy.deepcopy(RAW_FOOTBALL_MATCH)
        raw["id"] = match_id
        raw.update(overrides)
        return raw

    return _make


@pytest.fixture
def test_settings() -> AppSettings:
    return AppSettings(
        gemini_api_key="test-key-1234567890",
        primary_timeout_sec=0.2,
        fallback_timeout_sec=0.2,
        audit_max_attempts=3,
        _env_file=None,
    )


@pytest.fixture
def no_key_settings() -> AppSettings:
    return AppSettings(gemini_api_key="", _env_file=None)


@pytest.fixture
def static_catalog():
    _version, matches = load_static_catalog(today=TODAY)
    return matches


class FakeFetcher:
    """Stands in for MatchCatalogFetcher; behaviour is keyed by provider name.

    ``results`` maps a provider to a list of matches or an exception to raise;
    ``delays`` maps a provider to seconds slept before answering.
    """

    def __init__(
        self,
        results: Dict[str, Any],
        delays: Optional[Dict[str, float]] = None,
    ):
        self.results = results
        self.delays = delays or {}
        self.calls: List[str] = []
        self.cancelled: List[str] = []

    async def fetch_once(self, provider, request):
        self.calls.append(provider.name)
        try:
            await asyncio.sleep(self.delays.get(provider.name, 0))
        except asyncio.CancelledError:
            self.cancelled.append(provider.name)
            raise
        result = self.results[provider.name]
        if isinstance(result, BaseException):
            raise result
        return list(result)


@pytest.fixture
def fake_fetcher_factory():
    return FakeFetcher
