"""
Core data models for the Citation Intelligence Engine.
"""

from .schemas import (
    DiscoveryTuple,
    CitationQueryResult,
    CitationSample,
    SyncStatus,
    TenantListing,
    TenantLocation,
    TenantRecord,
    TopGap,
    CitationGapSummary,
    RunError,
    RunSummary,
)

__all__ = [
    "DiscoveryTuple",
    "CitationQueryResult",
    "CitationSample",
    "SyncStatus",
    "TenantListing",
    "TenantLocation",
    "TenantRecord",
    "TopGap",
    "CitationGapSummary",
    "RunError",
    "RunSummary",
]
