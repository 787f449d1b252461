# Bundled offline catalog used when no live provider produces data.
import json
import os
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from portfolio_audit.models.match import Match
from portfolio_audit.normalization.catalog_decoder import decode_matches

STATIC_CATALOG_PATH = os.path.join(os.path.dirname(__file__), "static_catalog.json")


def _start_time(offset_days: int, kickoff: str, today: date) -> str:
    day = today + timedelta(days=offset_days)
    return f"{day.month:02d}-{day.day:02d} {kickoff}"


def _resolve_start_times(raw_matches: List[Dict[str, Any]], today: date) -> List[Dict[str, Any]]:
    resolved = []
    for raw in raw_matches:
        raw = dict(raw)
        if "startTime" not in raw and "kickoff" in raw:
            raw["startTime"] = _start_time(
                int(raw.pop("start_offset_days", 0)), raw.pop("kickoff"), today
            )
        resolved.append(raw)
    return resolved


def load_static_catalog(
    path: str = STATIC_CATALOG_PATH, today: Optional[date] = None
) -> Tuple[str, List[Match]]:
    """Load the bundled snapshot through the same validation as live data.

    Returns:
        The snapshot version and its matches, with start times anchored to ``today``.
    """
    with open(path, "r", encoding="utf-8") as f:
        snapshot = json.load(f)

    version = str(snapshot.get("version", "unknown"))
    matches = decode_matches(
        _resolve_start_times(snapshot.get("matches", []), today or date.today())
    )
    logger.info(f"Loaded static catalog v{version} with {len(matches)} matches.")
    return version, matches
