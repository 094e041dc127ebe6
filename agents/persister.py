"""
Result Persister
----------------
Turns one tuple's platform counts into citation_source_intelligence rows.

  citation_frequency = round_half_up(min(count / successful_queries, 1), 3)

The sampler counts a platform at most once per query, so count never
exceeds successful_queries and the cap does not bind for sampler output.
A caller that passes raw per-URL counts gets a clipped value instead: the
stored frequency is then "share of answers citing the platform, at most 1",
not count / successful_queries.

Rows are upserted on (business_category, city, state, platform,
model_provider): each run replaces the previous measurement for a key.
Every platform is committed on its own so one failed write never takes the
others down with it.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config.settings import settings
from core.gap_score import round_half_up
from db.models import CitationSourceIntelligence

logger = logging.getLogger(__name__)

CONFLICT_KEY = ("business_category", "city", "state", "platform", "model_provider")
UPDATED_COLUMNS = ("citation_frequency", "sample_query", "sample_size", "measured_at")


def citation_frequency(count: int, successful_queries: int) -> float:
    """Fraction of successful queries citing a platform, capped at 1 and rounded to 3 places."""
    return round_half_up(min(count / successful_queries, 1.0), 3)


def _dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'")
    return insert


def _upsert_statement(db: Session, values: Dict):
    insert = _dialect_insert(db)
    stmt = insert(CitationSourceIntelligence).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=list(CONFLICT_KEY),
        set_={col: stmt.excluded[col] for col in UPDATED_COLUMNS},
    )


def write_citation_results(
    db: Session,
    category: str,
    city: str,
    state: str,
    platform_counts: Dict[str, int],
    successful_queries: int,
    sample_query: Optional[str],
    model_provider: Optional[str] = None,
) -> int:
    """
    Upsert one row per platform. Returns how many platforms were written.

    A sample with zero successful queries writes nothing: 0/0 carries no
    signal and must not overwrite an earlier measurement.
    """
    if successful_queries <= 0:
        logger.info(f"No successful queries for {category} @ {city}, {state}; nothing written")
        return 0

    provider = model_provider or settings.CITATION_MODEL_PROVIDER
    measured_at = datetime.utcnow()
    written = 0

    for platform, count in platform_counts.items():
        values = {
            "business_category": category,
            "city": city,
            "state": state,
            "platform": platform,
            "model_provider": provider,
            "citation_frequency": citation_frequency(count, successful_queries),
            "sample_query": sample_query,
            "sample_size": successful_queries,
            "measured_at": measured_at,
        }
        try:
            db.execute(_upsert_statement(db, values))
            db.commit()
            written += 1
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Upsert failed for {platform} in {category}/{city}: {e}")

    logger.info(f"  → wrote {written}/{len(platform_counts)} platforms for {category} @ {city}, {state}")
    return written
