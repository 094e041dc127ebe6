#!/usr/bin/env python3
"""
Quick CLI runner for the Citation Intelligence Engine.

Usage:
    python run.py                    # One citation cron pass
    python run.py --mode cron        # Same as above
    python run.py --mode api         # Start FastAPI server
    python run.py --mode gap --org <org_id>   # Print one org's citation gap score
"""

import sys
import os
import argparse
import json
import logging

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("run")


def cron() -> int:
    """Run one batch pass and print the run summary."""
    from agents.orchestrator import CitationCronConfigError
    from db.database import init_db
    from utils.pipeline import run_citation_cron

    init_db()

    print("\n" + "="*70)
    print("  🔎 CITATION INTELLIGENCE — CRON RUN")
    print("="*70 + "\n")

    try:
        summary = run_citation_cron()
    except CitationCronConfigError as e:
        print(f"\n❌ {e}")
        return 1

    print(summary.summary())
    print()
    print(json.dumps(summary.to_dict(), indent=2))
    return 0


def gap(org_id: str) -> int:
    """Print the citation gap score for one org's primary location."""
    from config.settings import settings
    from core.gap_score import calculate_citation_gap_score
    from core.queries import primary_category_label
    from db.database import init_db, get_db
    from db.repository import (
        get_primary_location, load_citation_intelligence, load_tenant_listings,
    )

    init_db()
    with get_db() as db:
        location = get_primary_location(db, org_id)
        if location is None:
            print(f"❌ No location for org {org_id}")
            return 1

        category = primary_category_label(location.categories)
        platforms = load_citation_intelligence(
            db, category, location.city or "", location.state or "",
            settings.CITATION_MODEL_PROVIDER,
        )
        listings = load_tenant_listings(db, org_id, location.id)
        summary = calculate_citation_gap_score(
            platforms, listings, relevance_threshold=settings.CITATION_RELEVANCE_THRESHOLD,
        )

    print(json.dumps(summary.to_dict(), indent=2))
    return 0


def start_api():
    import uvicorn
    from config.settings import settings
    uvicorn.run(
        "api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Citation Intelligence Engine")
    parser.add_argument(
        "--mode",
        choices=["cron", "api", "gap"],
        default="cron",
        help="Run mode: cron | api | gap",
    )
    parser.add_argument("--org", help="Organization id (gap mode)")
    args = parser.parse_args()

    if args.mode == "cron":
        sys.exit(cron())
    elif args.mode == "api":
        start_api()
    elif args.mode == "gap":
        if not args.org:
            parser.error("--org is required in gap mode")
        sys.exit(gap(args.org))
