import math
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from portfolio_audit.models.enums import MarketType, Sport
from portfolio_audit.models.selection import (
    CombinationSummary,
    Selection,
    SelectionKey,
)
from portfolio_audit.portfolio.combinatorics import group_by_match, summarize

MutationListener = Callable[[int], None]


def _is_quotable(odds: Any) -> bool:
    if isinstance(odds, bool) or not isinstance(odds, (int, float)):
        return False
    return math.isfinite(odds) and odds > 0


class PortfolioStore:
    """Owns the user's selections.

    Selections are unique by ``(match_id, market_type, pick)``. Every
    successful mutation bumps ``version``, recomputes ``summary`` and notifies
    listeners (the audit state drops its cached result on notification).
    """

    def __init__(self):
        self._selections: Dict[SelectionKey, Selection] = {}
        self._listeners: List[MutationListener] = []
        self.version = 0
        self.summary = CombinationSummary()

    def subscribe(self, listener: MutationListener) -> None:
        self._listeners.append(listener)

    @property
    def selections(self) -> Tuple[Selection, ...]:
        return tuple(self._selections.values())

    def __len__(self) -> int:
        return len(self._selections)

    def __contains__(self, key: object) -> bool:
        return key in self._selections

    def _mutated(self) -> None:
        self.version += 1
        self.summary = summarize(self._selections.values())
        for listener in self._listeners:
            listener(self.version)

    def toggle(
        self,
        match_id: str,
        market_type: MarketType,
        pick: str,
        odds: Optional[float],
        *,
        match_name: str = "",
        sport: Optional[Sport] = None,
    ) -> Tuple[Selection, ...]:
        """Add the selection if absent, remove it if present.

        A selection without a strictly positive price is never admitted; the
        call is then a no-op.
        """
        market_type = MarketType(market_type)
        if not _is_quotable(odds):
            logger.debug(
                f"Ignoring toggle on {match_id}/{market_type.value}/{pick}: no valid odds ({odds!r})"
            )
            return self.selections

        key: SelectionKey = (match_id, market_type, pick)
        if key in self._selections:
            del self._selections[key]
            logger.debug(f"Removed selection {key}")
        else:
            self._selections[key] = Selection(
                match_id=match_id,
                market_type=market_type,
                pick=pick,
                odds=float(odds),
                match_name=match_name,
                sport=sport,
            )
            logger.debug(f"Added selection {key} @ {odds}")
        self._mutated()
        return self.selections

    def remove(self, match_id: str, market_type: MarketType, pick: str) -> bool:
        """Remove a selection by identity key. Returns whether anything was removed."""
        key: SelectionKey = (match_id, MarketType(market_type), pick)
        if self._selections.pop(key, None) is None:
            return False
        self._mutated()
        return True

    def clear(self) -> None:
        if not self._selections:
            return
        self._selections.clear()
        self._mutated()

    def grouped_by_match(self) -> Dict[str, List[Selection]]:
        return group_by_match(self._selections.values())

    def orphaned(self, catalog_ids: Any) -> List[Selection]:
        """Selections whose match is not in the given catalog ids."""
        return [s for s in self._selections.values() if s.match_id not in catalog_ids]
