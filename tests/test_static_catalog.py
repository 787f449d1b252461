import json
from datetime import date

import pytest

from portfolio_audit.catalog.static_catalog import load_static_catalog
from portfolio_audit.errors import SchemaError
from portfolio_audit.models.enums import Sport


def test_bundled_catalog_loads():
    version, matches = load_static_catalog(today=date(2026, 10, 19))

    assert version == "2026.10.1"
    assert {m.sport for m in matches} == {Sport.FOOTBALL, Sport.BASKETBALL}
    assert len({m.id for m in matches}) == len(matches)
    for match in matches:
        assert match.match_context.league_rank is not None
        assert match.match_context.markets is not None


def test_start_times_are_anchored_to_today():
    _version, matches = load_static_catalog(today=date(2026, 12, 31))
    by_id = {m.id: m for m in matches}

    assert by_id["f_1001"].start_time.startswith("12-31 ")
    # kicks off the next day, across the year boundary
    assert by_id["b_2002"].start_time.startswith("01-01 ")


def test_invalid_snapshot_is_rejected(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps({"version": "x", "matches": [{"id": "only-an-id"}]}))
    with pytest.raises(SchemaError):
        load_static_catalog(path=str(path), today=date(2026, 10, 19))
