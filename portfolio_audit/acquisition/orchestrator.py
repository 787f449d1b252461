"""Primary/fallback acquisition of the match catalog under a wall-clock budget."""

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from loguru import logger

from portfolio_audit.acquisition.provider_config import (
    DEFAULT_PLANS,
    CatalogRequest,
    ProviderConfig,
    ProviderPlan,
)
from portfolio_audit.config.settings import AppSettings, settings as default_settings
from portfolio_audit.errors import (
    AllProvidersExhausted,
    ConfigurationError,
    ProviderError,
    ProviderTimeout,
    SchemaError,
)
from portfolio_audit.models.enums import SourceKind, Sport
from portfolio_audit.models.match import Match

StatusCallback = Callable[[str], None]


class CatalogFetcher(Protocol):
    async def fetch_once(
        self, provider: ProviderConfig, request: CatalogRequest
    ) -> List[Match]: ...


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one acquisition run.

    ``ok`` is False only when every provider of the plan failed or timed out.
    A provider answering with zero matches is still ``ok``.
    """

    matches: Tuple[Match, ...] = ()
    ok: bool = False
    provider: Optional[str] = None
    primary_timed_out: bool = False
    failures: Tuple[str, ...] = ()

    def raise_for_status(self) -> None:
        if not self.ok:
            raise AllProvidersExhausted("; ".join(self.failures) or "no providers")


def _discard_result(task: "asyncio.Task[List[Match]]") -> None:
    # Retrieve the abandoned task's outcome so it is never reported as unhandled
    if not task.cancelled():
        exc = task.exception()
        if exc is not None:
            logger.debug(f"Abandoned fetch '{task.get_name()}' finished with: {exc!r}")


class AcquisitionOrchestrator:
    """Races a primary provider against a timeout, then falls back sequentially.

    Provider failures (transport errors, invalid payloads, timeouts) never
    escape: the caller gets a ``FetchOutcome`` with ``ok=False`` and is
    responsible for substituting the static catalog. Missing credentials are
    the exception and raise ``ConfigurationError`` straight away.
    """

    def __init__(
        self,
        fetcher: CatalogFetcher,
        plans: Optional[Dict[SourceKind, ProviderPlan]] = None,
        primary_timeout_sec: Optional[float] = None,
        fallback_timeout_sec: Optional[float] = None,
        app_settings: Optional[AppSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        app_settings = app_settings or default_settings
        self.fetcher = fetcher
        self.plans = plans if plans is not None else DEFAULT_PLANS
        self.primary_timeout_sec = (
            primary_timeout_sec
            if primary_timeout_sec is not None
            else app_settings.primary_timeout_sec
        )
        self.fallback_timeout_sec = (
            fallback_timeout_sec
            if fallback_timeout_sec is not None
            else app_settings.fallback_timeout_sec
        )
        self._today = today

    async def fetch(
        self,
        source_kind: SourceKind,
        status_callback: Optional[StatusCallback] = None,
        *,
        sport_scope: Optional[Sequence[Sport]] = None,
    ) -> FetchOutcome:
        """Acquire a catalog for ``source_kind``.

        Args:
            source_kind: Which provider plan to run.
            status_callback: Receives human-readable progress messages.
            sport_scope: Sports to request; both by default.

        Returns:
            The outcome; never raises for provider-level failures.
        """
        notify = status_callback or (lambda _status: None)
        plan = self.plans.get(source_kind)
        if plan is None:
            logger.warning(f"No provider plan configured for {source_kind.value}")
            notify("No data source configured.")
            return FetchOutcome(failures=(f"no plan for {source_kind.value}",))

        request = CatalogRequest(
            as_of_date=self._today(),
            sport_scope=tuple(sport_scope) if sport_scope else tuple(Sport),
        )
        failures: List[str] = []

        matches, failure = await self._attempt(
            plan.primary, request, self.primary_timeout_sec, notify
        )
        if matches is not None:
            notify(f"Loaded {len(matches)} matches from {plan.primary.name} source.")
            return FetchOutcome(matches=tuple(matches), ok=True, provider=plan.primary.name)

        primary_timed_out = isinstance(failure, ProviderTimeout)
        failures.append(f"{plan.primary.name}: {failure}")

        if plan.fallback is None:
            logger.warning(
                f"Primary provider '{plan.primary.name}' failed and {source_kind.value} has no fallback."
            )
            notify("Primary source unavailable, no backup configured.")
            return FetchOutcome(primary_timed_out=primary_timed_out, failures=tuple(failures))

        reason = "timed out" if primary_timed_out else "failed"
        logger.warning(
            f"Primary provider '{plan.primary.name}' {reason}, falling back to '{plan.fallback.name}'."
        )
        notify(f"Primary source {reason}, falling back to {plan.fallback.name} source...")

        matches, failure = await self._attempt(
            plan.fallback, request, self.fallback_timeout_sec, notify
        )
        if matches is not None:
            notify(f"Loaded {len(matches)} matches from {plan.fallback.name} source.")
            return FetchOutcome(
                matches=tuple(matches),
                ok=True,
                provider=plan.fallback.name,
                primary_timed_out=primary_timed_out,
            )

        failures.append(f"{plan.fallback.name}: {failure}")
        logger.error(f"All providers exhausted for {source_kind.value}: {failures}")
        notify("All live sources unavailable.")
        return FetchOutcome(primary_timed_out=primary_timed_out, failures=tuple(failures))

    async def _attempt(
        self,
        provider: ProviderConfig,
        request: CatalogRequest,
        timeout_sec: float,
        notify: StatusCallback,
    ) -> Tuple[Optional[List[Match]], Optional[Exception]]:
        """Run one provider under ``timeout_sec``; return (matches, None) or (None, error)."""
        notify(provider.status_message)
        task = asyncio.create_task(
            self.fetcher.fetch_once(provider, request), name=f"fetch-{provider.name}"
        )
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_sec)
        except asyncio.CancelledError:
            # Superseded by a newer refresh
            task.cancel()
            task.add_done_callback(_discard_result)
            raise

        if not done:
            # Cancellation is advisory; do not wait for the request to unwind
            task.cancel()
            task.add_done_callback(_discard_result)
            logger.warning(f"Provider '{provider.name}' exceeded {timeout_sec}s budget.")
            return None, ProviderTimeout(f"{provider.name} exceeded {timeout_sec}s")

        exc = task.exception()
        if exc is None:
            return task.result(), None
        if isinstance(exc, ConfigurationError):
            raise exc
        if isinstance(exc, (ProviderError, SchemaError)):
            logger.warning(f"Provider '{provider.name}' failed: {exc}")
        else:
            logger.opt(exception=exc).error(
                f"Unexpected error from provider '{provider.name}': {exc!r}"
            )
        return None, exc if isinstance(exc, Exception) else ProviderError(repr(exc))
