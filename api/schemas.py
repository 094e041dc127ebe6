"""
Pydantic schemas for API responses.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from datetime import datetime


# ─── Cron ────────────────────────────────────────────────────────────────────

class CronRunResponse(BaseModel):
    ok: bool
    halted: Optional[bool] = None
    orgs_processed: int = 0
    orgs_skipped: int = 0
    queries_run: int = 0
    platforms_found: int = 0
    categories_processed: int = 0
    metros_processed: int = 0
    ambiguous_responses: int = 0
    errors: List[Dict[str, Any]] = []


# ─── Citation intelligence ───────────────────────────────────────────────────

class CitationIntelligenceResponse(BaseModel):
    business_category: str
    city: str
    state: str
    platform: str
    model_provider: str
    citation_frequency: float
    sample_query: Optional[str] = None
    sample_size: int
    measured_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TopGapResponse(BaseModel):
    platform: str
    citation_frequency: float = Field(..., alias="citationFrequency")
    action: str


class CitationGapResponse(BaseModel):
    org_id: str
    category: str
    city: str
    state: str
    gap_score: int = Field(..., alias="gapScore", ge=0, le=100)
    platforms_covered: int = Field(..., alias="platformsCovered")
    platforms_that_matter: int = Field(..., alias="platformsThatMatter")
    top_gap: Optional[TopGapResponse] = Field(None, alias="topGap")
    platforms: List[CitationIntelligenceResponse] = []


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
