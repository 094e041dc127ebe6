"""
Repository Layer
----------------
Tenant reads and cron run bookkeeping. The citation upsert itself lives in
agents/persister.py next to the rest of the write path.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models import CitationSourceIntelligence, CronRunLog, Listing, Location, Organization
from models.schemas import TenantListing, TenantLocation, TenantRecord

logger = logging.getLogger(__name__)


# ─── Tenants ─────────────────────────────────────────────────────────────────


def get_primary_location(db: Session, org_id: str) -> Optional[Location]:
    """Earliest-created location for an org, or None."""
    stmt = (
        select(Location)
        .where(Location.org_id == org_id)
        .order_by(Location.created_at.asc(), Location.id.asc())
        .limit(1)
    )
    return db.execute(stmt).scalars().first()


def load_eligible_tenants(db: Session, plans: Sequence[str]) -> List[TenantRecord]:
    """Orgs on one of `plans`, each with its primary location attached."""
    orgs = db.execute(
        select(Organization)
        .where(Organization.plan.in_(list(plans)))
        .order_by(Organization.created_at.asc(), Organization.id.asc())
    ).scalars().all()

    tenants: List[TenantRecord] = []
    for org in orgs:
        location = get_primary_location(db, org.id)
        tenants.append(TenantRecord(
            org_id=org.id,
            plan=org.plan,
            name=org.name,
            location=TenantLocation(
                categories=location.categories,
                city=location.city,
                state=location.state,
            ) if location else None,
        ))

    logger.info(f"Loaded {len(tenants)} eligible orgs (plans: {', '.join(plans)})")
    return tenants


def load_tenant_listings(db: Session, org_id: str, location_id: str) -> List[TenantListing]:
    rows = db.execute(
        select(Listing.directory, Listing.sync_status)
        .where(Listing.org_id == org_id, Listing.location_id == location_id)
    ).all()
    return [
        TenantListing(directory=directory or "", sync_status=sync_status or "not_linked")
        for directory, sync_status in rows
    ]


# ─── Citation intelligence (read side) ───────────────────────────────────────


def load_citation_intelligence(
    db: Session,
    category: str,
    city: str,
    state: str,
    model_provider: Optional[str] = None,
) -> List[CitationSourceIntelligence]:
    """
    Persisted rows for one tuple, matched case-insensitively, highest frequency first.

    Tuples are stored with the city/state spelling the tenant used, so
    "Austin" and "austin" can both hold a row for the same platform. Only the
    most recent measurement per (platform, model_provider) is returned.
    """
    stmt = select(CitationSourceIntelligence).where(
        func.lower(CitationSourceIntelligence.business_category) == category.lower(),
        func.lower(CitationSourceIntelligence.city) == city.lower(),
        func.lower(CitationSourceIntelligence.state) == (state or "").lower(),
    )
    if model_provider:
        stmt = stmt.where(CitationSourceIntelligence.model_provider == model_provider)

    latest: Dict[Tuple[str, str], CitationSourceIntelligence] = {}
    for row in db.execute(stmt).scalars():
        key = (row.platform.lower(), row.model_provider)
        current = latest.get(key)
        if current is None or (row.measured_at or datetime.min) > (current.measured_at or datetime.min):
            latest[key] = row

    return sorted(latest.values(), key=lambda r: (-r.citation_frequency, r.platform))


# ─── Cron run log ────────────────────────────────────────────────────────────


def log_cron_start(db: Session, cron_name: str) -> CronRunLog:
    entry = CronRunLog(cron_name=cron_name, status="running", started_at=datetime.utcnow())
    db.add(entry)
    db.commit()
    return entry


def _finish(db: Session, entry: CronRunLog, status: str) -> None:
    entry.status = status
    entry.finished_at = datetime.utcnow()
    if entry.started_at:
        entry.duration_ms = int((entry.finished_at - entry.started_at).total_seconds() * 1000)
    db.commit()


def log_cron_complete(db: Session, entry: CronRunLog, summary: Dict[str, Any]) -> None:
    entry.summary = summary
    _finish(db, entry, "success")


def log_cron_failed(db: Session, entry: CronRunLog, message: str) -> None:
    entry.error_message = message[:2000]
    _finish(db, entry, "failed")
