"""Session state: the current catalog, the portfolio and the audit result.

All three are owned by a ``BettingSession`` and mutated only from the event
loop that drives it. Catalog refreshes are latest-wins: each refresh takes a
new generation number and an outcome is applied only if its generation is
still current when it completes.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from loguru import logger

from portfolio_audit.acquisition.orchestrator import AcquisitionOrchestrator, FetchOutcome
from portfolio_audit.audit.oracle import AuditOracle
from portfolio_audit.audit.request_builder import build_audit_request
from portfolio_audit.catalog.static_catalog import load_static_catalog
from portfolio_audit.errors import AuditInProgressError, ConfigurationError
from portfolio_audit.models.audit import AuditResult
from portfolio_audit.models.enums import CatalogOrigin, MarketType, SourceKind, Sport
from portfolio_audit.models.match import Match
from portfolio_audit.models.selection import Selection
from portfolio_audit.portfolio.store import PortfolioStore

StaticLoader = Callable[[], Tuple[str, List[Match]]]


@dataclass
class CatalogState:
    """The current catalog snapshot. Replaced wholesale, never patched."""

    matches: Tuple[Match, ...] = ()
    origin: CatalogOrigin = CatalogOrigin.STATIC
    provider: Optional[str] = None
    static_version: Optional[str] = None
    last_sync: Optional[datetime] = None
    generation: int = 0

    def get(self, match_id: str) -> Optional[Match]:
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    def for_sport(self, sport: Sport) -> List[Match]:
        return [m for m in self.matches if m.sport == sport]

    @property
    def sync_label(self) -> str:
        if self.last_sync is None:
            return "never"
        label = self.last_sync.strftime("%H:%M:%S")
        if self.origin == CatalogOrigin.STATIC:
            return f"{label} (static catalog)"
        if self.origin == CatalogOrigin.ERROR_FALLBACK:
            return f"{label} (error fallback)"
        return label


@dataclass
class AuditState:
    """Latest audit result, tagged with the portfolio version it describes."""

    result: Optional[AuditResult] = None
    portfolio_version: Optional[int] = None
    auditing: bool = False
    error: Optional[Exception] = field(default=None, repr=False)

    def invalidate(self, _version: int) -> None:
        self.result = None
        self.portfolio_version = None
        self.error = None

    def store(self, result: AuditResult, computed_at: int, current_version: int) -> bool:
        """Keep ``result`` only if the portfolio has not moved on since submission."""
        if computed_at != current_version:
            logger.info(
                f"Discarding audit computed at portfolio v{computed_at}; portfolio is now v{current_version}."
            )
            return False
        self.result = result
        self.portfolio_version = computed_at
        return True

    def current(self, version: int) -> Optional[AuditResult]:
        """The cached result if it still describes portfolio ``version``, else None."""
        if self.result is None or self.portfolio_version != version:
            return None
        return self.result


class BettingSession:
    """Drives catalog acquisition, portfolio edits and audits for one user."""

    def __init__(
        self,
        orchestrator: AcquisitionOrchestrator,
        oracle: AuditOracle,
        source: SourceKind = SourceKind.PRIMARY_OFFICIAL,
        sport: Sport = Sport.FOOTBALL,
        static_loader: StaticLoader = load_static_catalog,
        status_callback: Optional[Callable[[str], None]] = None,
    ):
        self.orchestrator = orchestrator
        self.oracle = oracle
        self.source = source
        self.sport = sport
        self.static_loader = static_loader
        self.status_callback = status_callback

        self.catalog = CatalogState()
        self.portfolio = PortfolioStore()
        self.audit_state = AuditState()
        self.portfolio.subscribe(self.audit_state.invalidate)

        self.fetch_status = "Initializing..."
        self.is_fetching = False
        self._generation = 0
        self._refresh_task: Optional["asyncio.Task[FetchOutcome]"] = None

    # --- Catalog ---

    def _set_status(self, generation: int, status: str) -> None:
        if generation != self._generation:
            return  # Superseded refresh
        self.fetch_status = status
        if self.status_callback:
            self.status_callback(status)

    async def _acquire(self, generation: int) -> FetchOutcome:
        return await self.orchestrator.fetch(
            self.source, lambda status: self._set_status(generation, status)
        )

    async def refresh(self) -> bool:
        """Re-acquire the catalog, superseding any refresh still in flight.

        Returns:
            True if this refresh's result was applied, False if it was superseded.
        """
        self._generation += 1
        generation = self._generation
        if self._refresh_task is not None and not self._refresh_task.done():
            logger.debug("Superseding in-flight catalog refresh.")
            self._refresh_task.cancel()

        task = asyncio.create_task(self._acquire(generation), name=f"refresh-{generation}")
        self._refresh_task = task
        self.is_fetching = True

        await asyncio.wait({task})
        if task.cancelled() or generation != self._generation:
            logger.debug(f"Discarding result of superseded refresh #{generation}.")
            return False

        self.is_fetching = False
        origin = CatalogOrigin.LIVE
        outcome: Optional[FetchOutcome] = None
        try:
            outcome = task.result()
        except ConfigurationError as e:
            logger.error(f"Live acquisition disabled: {e}")
            origin = CatalogOrigin.ERROR_FALLBACK
        except Exception as e:
            logger.exception(f"Catalog acquisition crashed: {e}")
            origin = CatalogOrigin.ERROR_FALLBACK

        if outcome is not None and outcome.ok and outcome.matches:
            self._apply_catalog(outcome.matches, origin, provider=outcome.provider)
        else:
            if origin == CatalogOrigin.LIVE:
                origin = CatalogOrigin.STATIC
                if outcome is not None and outcome.ok:
                    logger.info("Live provider returned zero matches; using static catalog.")
            version, matches = self.static_loader()
            self._apply_catalog(tuple(matches), origin, static_version=version)
        self._set_status(generation, f"Catalog ready ({len(self.catalog.matches)} matches).")
        return True

    def _apply_catalog(
        self,
        matches: Tuple[Match, ...],
        origin: CatalogOrigin,
        provider: Optional[str] = None,
        static_version: Optional[str] = None,
    ) -> None:
        self.catalog = CatalogState(
            matches=tuple(matches),
            origin=origin,
            provider=provider,
            static_version=static_version,
            last_sync=datetime.now(),
            generation=self._generation,
        )
        orphaned = self.portfolio.orphaned({m.id for m in self.catalog.matches})
        if orphaned:
            logger.warning(
                f"{len(orphaned)} selection(s) refer to matches missing from the new catalog."
            )
        logger.info(
            f"Catalog replaced: {len(matches)} matches, origin={origin.value}, sync={self.catalog.sync_label}"
        )

    async def switch_sport(self, sport: Sport) -> bool:
        if sport == self.sport:
            return False
        self.sport = sport
        self.portfolio.clear()
        return await self.refresh()

    async def switch_source(self, source: SourceKind) -> bool:
        if source == self.source:
            return False
        self.source = source
        self.portfolio.clear()
        return await self.refresh()

    def visible_matches(self) -> List[Match]:
        return self.catalog.for_sport(self.sport)

    # --- Portfolio ---

    def toggle_selection(
        self, match_id: str, market_type: MarketType, pick: str
    ) -> Tuple[Selection, ...]:
        """Toggle a pick using the price quoted in the current catalog.

        A pick already in the portfolio is removed even when its match has
        left the catalog.
        """
        market_type = MarketType(market_type)
        if (match_id, market_type, pick) in self.portfolio:
            self.portfolio.remove(match_id, market_type, pick)
            return self.portfolio.selections

        match = self.catalog.get(match_id)
        if match is None:
            logger.warning(f"Cannot select on unknown match {match_id}")
            return self.portfolio.selections
        return self.portfolio.toggle(
            match_id,
            market_type,
            pick,
            match.odds_for(market_type, pick),
            match_name=match.match_name,
            sport=match.sport,
        )

    # --- Audit ---

    @property
    def audit_result(self) -> Optional[AuditResult]:
        return self.audit_state.current(self.portfolio.version)

    async def audit(self) -> Optional[AuditResult]:
        """Submit the portfolio to the oracle.

        Returns:
            The result, or None when the portfolio is empty or was edited
            while the audit was running.

        Raises:
            AuditInProgressError: another audit is outstanding.
            MalformedResponseError, AuditUnavailableError: the audit failed;
                nothing is cached.
        """
        if self.audit_state.auditing:
            raise AuditInProgressError("An audit is already in progress.")
        if not len(self.portfolio):
            return None

        version = self.portfolio.version
        request = build_audit_request(self.portfolio.selections, self.catalog.matches)
        self.audit_state.auditing = True
        self.audit_state.error = None
        try:
            result = await self.oracle.submit(request)
        except Exception as e:
            self.audit_state.error = e
            raise
        finally:
            self.audit_state.auditing = False

        if not self.audit_state.store(result, version, self.portfolio.version):
            return None
        return result
