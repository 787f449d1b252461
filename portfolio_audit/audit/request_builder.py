from typing import Dict, Iterable, List

from loguru import logger

from portfolio_audit.models.audit import AuditContextEntry, AuditRequest
from portfolio_audit.models.match import Match
from portfolio_audit.models.selection import Selection


def build_audit_request(
    selections: Iterable[Selection], catalog: Iterable[Match]
) -> AuditRequest:
    """Join selections with their match context into an oracle request.

    A selection whose match has left the catalog is still sent, described only
    by its own fields; it never fails the whole request.
    """
    by_id: Dict[str, Match] = {match.id: match for match in catalog}
    portfolio = list(selections)
    context: List[AuditContextEntry] = []

    for selection in portfolio:
        match = by_id.get(selection.match_id)
        if match is None:
            logger.warning(
                f"Match {selection.match_id} not in current catalog; sending selection without context."
            )
            context.append(
                AuditContextEntry(
                    match_id=selection.match_id,
                    match_name=selection.match_name or selection.match_id,
                    user_pick=selection.pick,
                    market_type=selection.market_type,
                    odds=selection.odds,
                )
            )
            continue

        context.append(
            AuditContextEntry(
                match_id=match.id,
                match_name=match.match_name,
                user_pick=selection.pick,
                market_type=selection.market_type,
                odds=selection.odds,
                match_context=match.match_context.model_dump(mode="json", exclude_none=True),
            )
        )

    return AuditRequest(portfolio=portfolio, context=context)
