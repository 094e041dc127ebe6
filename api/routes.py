"""
FastAPI Route Handlers
Citation Intelligence Engine
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from api.schemas import (
    CronRunResponse, CitationIntelligenceResponse, CitationGapResponse, HealthResponse,
)
from agents.orchestrator import CitationCronConfigError
from config.settings import settings
from core.gap_score import calculate_citation_gap_score
from core.plans import plan_satisfies
from core.queries import normalize_category_label, primary_category_label
from db.database import get_db_dependency
from db.models import Organization
from db.repository import (
    get_primary_location, load_citation_intelligence, load_tenant_listings,
)
from utils.pipeline import kill_switch_engaged, run_citation_cron

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── Health ──────────────────────────────────────────────────────────────────

@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    return HealthResponse(
        status="ok",
        version=settings.APP_VERSION,
        timestamp=datetime.utcnow(),
    )


# ─── Cron trigger ────────────────────────────────────────────────────────────

@router.get(
    "/cron/citation",
    response_model=CronRunResponse,
    response_model_exclude_none=True,
    tags=["Cron"],
)
def citation_cron(authorization: Optional[str] = Header(None)):
    """
    Run one citation intelligence pass. Called by the external scheduler with
    `Authorization: Bearer <CRON_SECRET>`.
    """
    secret = settings.CRON_SECRET
    if not secret or authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")

    if kill_switch_engaged():
        logger.info("Citation cron halted by kill switch.")
        return CronRunResponse(ok=True, halted=True)

    try:
        summary = run_citation_cron()
    except CitationCronConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(f"Citation cron failed: {e}")
        raise HTTPException(status_code=500, detail=f"Citation run failed: {str(e)}")

    return CronRunResponse(**summary.to_dict())


# ─── Citation intelligence (read side) ───────────────────────────────────────

@router.get(
    "/citations/intelligence",
    response_model=List[CitationIntelligenceResponse],
    tags=["Citations"],
)
def get_citation_intelligence(
    category: str = Query(..., min_length=1),
    city: str = Query(..., min_length=1),
    state: str = "",
    db: Session = Depends(get_db_dependency),
):
    """Latest per-platform citation frequencies for one (category, city, state)."""
    rows = load_citation_intelligence(
        db, normalize_category_label(category), city, state, settings.CITATION_MODEL_PROVIDER,
    )
    return [CitationIntelligenceResponse.model_validate(r) for r in rows]


@router.get("/citations/gap/{org_id}", response_model=CitationGapResponse, tags=["Citations"])
def get_citation_gap(org_id: str, db: Session = Depends(get_db_dependency)):
    """Citation gap score for an org's primary location."""
    org = db.get(Organization, org_id)
    if org is None:
        raise HTTPException(status_code=404, detail=f"Organization {org_id} not found.")

    if not plan_satisfies(org.plan, settings.CITATION_MIN_PLAN):
        raise HTTPException(
            status_code=403,
            detail=f"Citation gap scoring requires the {settings.CITATION_MIN_PLAN} plan or above.",
        )

    location = get_primary_location(db, org_id)
    if location is None:
        raise HTTPException(status_code=404, detail=f"Organization {org_id} has no location.")

    category = primary_category_label(location.categories)
    city = location.city or ""
    state = location.state or ""

    platforms = load_citation_intelligence(db, category, city, state, settings.CITATION_MODEL_PROVIDER)
    listings = load_tenant_listings(db, org_id, location.id)
    summary = calculate_citation_gap_score(
        platforms, listings, relevance_threshold=settings.CITATION_RELEVANCE_THRESHOLD,
    )

    return CitationGapResponse(
        org_id=org_id,
        category=category,
        city=city,
        state=state,
        platforms=[CitationIntelligenceResponse.model_validate(p) for p in platforms],
        **summary.to_dict(),
    )
