"""
Core data models / schemas for the Citation Intelligence Engine.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any


# ---------------------------------------------------------------------------
# Sampling work units
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiscoveryTuple:
    """One (category, city, state) unit of sampling work."""
    category: str                   # always stored lower-cased
    city: str
    state: str

    def __post_init__(self):
        object.__setattr__(self, "category", self.category.lower())

    @property
    def metro(self) -> str:
        return f"{self.city}, {self.state}" if self.state else self.city

    def to_dict(self) -> Dict[str, str]:
        return {"category": self.category, "city": self.city, "state": self.state}

    def __str__(self):
        return f"{self.category} @ {self.metro}"


@dataclass
class CitationQueryResult:
    query_text: str
    cited_urls: List[str] = field(default_factory=list)
    success: bool = True
    parse_failed: bool = False      # answer came back but was not valid JSON


@dataclass
class CitationSample:
    """Aggregated outcome of one tuple's query set."""
    platform_counts: Dict[str, int]
    successful_queries: int
    sample_query: Optional[str]
    queries_attempted: int = 0
    ambiguous_responses: int = 0


# ---------------------------------------------------------------------------
# Tenant-side inputs (read-only to this engine)
# ---------------------------------------------------------------------------

class SyncStatus(str, Enum):
    SYNCED = "synced"
    MISMATCH = "mismatch"
    PENDING = "pending"
    NOT_LINKED = "not_linked"


@dataclass
class TenantListing:
    directory: str
    sync_status: str = SyncStatus.NOT_LINKED.value


@dataclass
class TenantLocation:
    categories: Optional[List[str]]
    city: Optional[str]
    state: Optional[str]


@dataclass
class TenantRecord:
    org_id: str
    plan: str
    name: str = ""
    location: Optional[TenantLocation] = None   # primary (earliest) location


# ---------------------------------------------------------------------------
# Gap scoring
# ---------------------------------------------------------------------------

@dataclass
class TopGap:
    platform: str
    citation_frequency: float
    action: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "citationFrequency": self.citation_frequency,
            "action": self.action,
        }


@dataclass
class CitationGapSummary:
    gap_score: int                  # 0–100
    platforms_covered: int
    platforms_that_matter: int
    top_gap: Optional[TopGap] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gapScore": self.gap_score,
            "platformsCovered": self.platforms_covered,
            "platformsThatMatter": self.platforms_that_matter,
            "topGap": self.top_gap.to_dict() if self.top_gap else None,
        }


# ---------------------------------------------------------------------------
# Run summary
# ---------------------------------------------------------------------------

@dataclass
class RunError:
    reason: str
    org_id: Optional[str] = None
    tuple: Optional[DiscoveryTuple] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.org_id is not None:
            out["org_id"] = self.org_id
        if self.tuple is not None:
            out["tuple"] = self.tuple.to_dict()
        out["reason"] = self.reason
        return out


@dataclass
class RunSummary:
    ok: bool = True
    halted: bool = False
    orgs_processed: int = 0
    orgs_skipped: int = 0
    queries_run: int = 0
    platforms_found: int = 0
    categories_processed: int = 0
    metros_processed: int = 0
    ambiguous_responses: int = 0
    errors: List[RunError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "ok": self.ok,
            "orgs_processed": self.orgs_processed,
            "orgs_skipped": self.orgs_skipped,
            "queries_run": self.queries_run,
            "platforms_found": self.platforms_found,
            "categories_processed": self.categories_processed,
            "metros_processed": self.metros_processed,
            "ambiguous_responses": self.ambiguous_responses,
            "errors": [e.to_dict() for e in self.errors],
        }
        if self.halted:
            out["halted"] = True
        return out

    def summary(self) -> str:
        return (
            f"Citation run: orgs={self.orgs_processed} processed / "
            f"{self.orgs_skipped} skipped, queries={self.queries_run}, "
            f"platforms={self.platforms_found}, errors={len(self.errors)}"
            f"{' (halted)' if self.halted else ''}"
        )
