import sys
import asyncio
import argparse
from typing import List, Optional, Tuple

# --- Settings/Logging ---
from portfolio_audit.logging.setup import setup_logging
from portfolio_audit.config.settings import settings

setup_logging()

from loguru import logger

from portfolio_audit.acquisition.fetcher import MatchCatalogFetcher
from portfolio_audit.acquisition.orchestrator import AcquisitionOrchestrator
from portfolio_audit.audit.oracle import AuditOracle
from portfolio_audit.errors import (
    AuditUnavailableError,
    ConfigurationError,
    MalformedResponseError,
)
from portfolio_audit.models.enums import MarketType, SourceKind, Sport
from portfolio_audit.models.audit import AuditResult
from portfolio_audit.providers.gemini_client import GeminiClient
from portfolio_audit.session import BettingSession

from rich import print
from rich.panel import Panel
from rich.table import Table

RISK_COLOURS = {"LOW": "green", "MEDIUM": "yellow", "HIGH": "red"}
STATUS_COLOURS = {"PASS": "green", "WARNING": "yellow", "CRITICAL": "red"}


def parse_pick(raw: str) -> Tuple[str, MarketType, str]:
    """Parse MATCH_ID:MARKET:PICK (the pick itself may contain ':')."""
    try:
        match_id, market, pick = raw.split(":", 2)
        return match_id, MarketType(market.upper()), pick
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid pick '{raw}'. Expected MATCH_ID:MARKET:PICK, e.g. f_1001:CS:1:0"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Assemble a betting portfolio and submit it for a risk audit."
    )
    parser.add_argument(
        "--source",
        choices=[s.value for s in SourceKind],
        default=SourceKind.PRIMARY_OFFICIAL.value,
    )
    parser.add_argument(
        "--sport", choices=[s.value for s in Sport], default=Sport.FOOTBALL.value
    )
    parser.add_argument(
        "--pick",
        action="append",
        type=parse_pick,
        default=[],
        help="MATCH_ID:MARKET:PICK, repeatable (e.g. f_1001:WDL:home)",
    )
    parser.add_argument("--audit", action="store_true", help="Submit the portfolio for audit.")
    parser.add_argument(
        "--offline", action="store_true", help="Skip live providers, use the static catalog."
    )
    return parser


def render_catalog(session: BettingSession) -> None:
    table = Table(title=f"{session.sport.value} matches - synced {session.catalog.sync_label}")
    table.add_column("ID")
    table.add_column("League")
    table.add_column("Fixture")
    table.add_column("Start")
    table.add_column("H / D / A")
    for match in session.visible_matches():
        wdl = match.match_context.international_odds.wdl
        prices = f"{wdl.h} / {wdl.d} / {wdl.a}" if wdl else "--"
        table.add_row(match.id, match.league, match.match_name, match.start_time, prices)
    print(table)


def render_portfolio(session: BettingSession) -> None:
    table = Table(title=f"Portfolio ({len(session.portfolio)} selections)")
    table.add_column("Match")
    table.add_column("Market")
    table.add_column("Pick")
    table.add_column("Odds", justify="right")
    for match_id, group in session.portfolio.grouped_by_match().items():
        for selection in group:
            table.add_row(
                selection.match_name or match_id,
                selection.market_type.value,
                selection.pick,
                f"{selection.odds:.2f}",
            )
    print(table)
    summary = session.portfolio.summary
    print(
        f"[bold]{summary.count}[/bold] combination(s), "
        f"combined odds {summary.min_odds:.2f} - {summary.max_odds:.2f}"
    )


def render_audit(result: AuditResult) -> None:
    colour = STATUS_COLOURS[result.summary.status.value]
    print(
        Panel(
            result.summary.text,
            title=f"[{colour}]{result.summary.status.value}[/{colour}] risk {result.summary.risk_score:.0f}/100",
        )
    )
    for detail in result.details:
        colour = RISK_COLOURS[detail.risk_level.value]
        body = detail.analysis_text
        if detail.optimization and detail.optimization.available:
            body += (
                f"\n[italic]Suggestion:[/italic] {detail.optimization.suggested_pick}"
                f" - {detail.optimization.suggested_reason}"
            )
        print(
            Panel(
                body,
                title=f"{detail.selection_ref or '?'} [{colour}]{detail.risk_level.value}[/{colour}] {detail.tag or ''}",
            )
        )


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)
    logger.info("Starting portfolio audit session")

    client = GeminiClient(settings)
    plans = {} if args.offline else None
    orchestrator = AcquisitionOrchestrator(MatchCatalogFetcher(client, settings), plans=plans)
    session = BettingSession(
        orchestrator,
        AuditOracle(client, settings),
        source=SourceKind(args.source),
        sport=Sport(args.sport),
        status_callback=lambda status: logger.info(f"[status] {status}"),
    )

    try:
        await session.refresh()
        render_catalog(session)

        for match_id, market_type, pick in args.pick:
            before = len(session.portfolio)
            session.toggle_selection(match_id, market_type, pick)
            if len(session.portfolio) == before:
                logger.warning(f"Pick {match_id}:{market_type.value}:{pick} not admitted (no quoted odds).")
        render_portfolio(session)

        if args.audit:
            try:
                result = await session.audit()
            except (MalformedResponseError, AuditUnavailableError, ConfigurationError) as e:
                logger.error(f"Audit failed: {e}")
                print(Panel("Audit engine unavailable, please try again later.", style="red"))
                return 1
            if result is None and not len(session.portfolio):
                logger.warning("Portfolio is empty; nothing to audit.")
            elif result is None:
                logger.warning("Portfolio changed during the audit; result discarded.")
            else:
                render_audit(result)
        return 0
    finally:
        await client.close()


def cli() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
    except Exception as e:
        logger.exception(f"Unhandled exception in main execution: {e}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
