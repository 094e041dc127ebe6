"""
Citation Gap Scoring
--------------------
Compares a tenant's directory listings against the platforms the answer
engine cites for the tenant's (category, city, state):

  Relevant  = citation_frequency >= τ_rel   (default 0.30)
  Covered   = relevant AND a listing with the same directory name
              (case-insensitive) whose sync_status != "not_linked"
  GapScore  = round(|Covered| / |Relevant| * 100)

TopGap is the uncovered relevant platform with the highest frequency; ties
keep the input order.

Pure module: no AI calls, no DB access.
"""

import math
from typing import Any, List, Optional, Sequence

from models.schemas import CitationGapSummary, TopGap, SyncStatus

CITATION_RELEVANCE_THRESHOLD = 0.30


def round_half_up(value: float, ndigits: int = 0) -> float:
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def _capitalize(s: str) -> str:
    return s[:1].upper() + s[1:]


def _is_covered(platform: str, tenant_listings: Sequence[Any]) -> bool:
    name = platform.lower()
    return any(
        (listing.directory or "").lower() == name
        and listing.sync_status != SyncStatus.NOT_LINKED.value
        for listing in tenant_listings
    )


def build_gap_action(platform: str, citation_frequency: float) -> str:
    pct = int(round_half_up(citation_frequency * 100))
    return f"Claim your {_capitalize(platform)} listing to appear in {pct}% more AI answers"


def calculate_citation_gap_score(
    platforms: Sequence[Any],
    tenant_listings: Sequence[Any],
    relevance_threshold: float = CITATION_RELEVANCE_THRESHOLD,
) -> CitationGapSummary:
    """
    Parameters
    ----------
    platforms : sequence
        Intelligence rows for the tenant's tuple; anything exposing
        `.platform` and `.citation_frequency`.
    tenant_listings : sequence
        The tenant's listings; anything exposing `.directory` and `.sync_status`.
    relevance_threshold : float
        Minimum citation frequency for a platform to count.
    """
    relevant = [p for p in platforms if p.citation_frequency >= relevance_threshold]

    if not relevant:
        # No data yet: optimistic default.
        return CitationGapSummary(
            gap_score=100,
            platforms_covered=0,
            platforms_that_matter=0,
            top_gap=None,
        )

    covered: List[Any] = []
    uncovered: List[Any] = []
    for p in relevant:
        (covered if _is_covered(p.platform, tenant_listings) else uncovered).append(p)

    gap_score = int(round_half_up(len(covered) / len(relevant) * 100))

    uncovered.sort(key=lambda p: p.citation_frequency, reverse=True)
    top: Optional[TopGap] = None
    if uncovered:
        worst = uncovered[0]
        top = TopGap(
            platform=worst.platform,
            citation_frequency=worst.citation_frequency,
            action=build_gap_action(worst.platform, worst.citation_frequency),
        )

    return CitationGapSummary(
        gap_score=gap_score,
        platforms_covered=len(covered),
        platforms_that_matter=len(relevant),
        top_gap=top,
    )
