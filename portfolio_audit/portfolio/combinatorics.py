from typing import Dict, Iterable, List

from portfolio_audit.models.selection import CombinationSummary, Selection


def group_by_match(selections: Iterable[Selection]) -> Dict[str, List[Selection]]:
    """Group selections by match id, preserving first-seen and insertion order."""
    groups: Dict[str, List[Selection]] = {}
    for selection in selections:
        groups.setdefault(selection.match_id, []).append(selection)
    return groups


def summarize(selections: Iterable[Selection]) -> CombinationSummary:
    """Number of parlay combinations and the combined-odds range.

    A parlay takes exactly one selection from every match group, so the count
    is the product of group sizes and the extremes are the products of each
    group's cheapest and dearest price. Products are taken in group order.
    """
    groups = group_by_match(selections)
    if not groups:
        return CombinationSummary()

    count = 1
    min_odds = 1.0
    max_odds = 1.0
    for group in groups.values():
        prices = [s.odds for s in group]
        count *= len(group)
        min_odds *= min(prices)
        max_odds *= max(prices)
    return CombinationSummary(count=count, min_odds=min_odds, max_odds=max_odds)
