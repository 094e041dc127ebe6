"""
Shared fixtures: an in-memory SQLite database and tenant seeding helpers.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.models import Base, Organization, Location, Listing, CitationSourceIntelligence


# ─── Database ────────────────────────────────────────────────────────────────

@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


# ─── Seeding ─────────────────────────────────────────────────────────────────

@pytest.fixture
def seed_org(db):
    """
    Create an org with an optional primary location and listings.
    Returns (org, location).
    """
    def _seed(
        plan="growth",
        name="Cloud Nine Lounge",
        categories=("Restaurant > Hookah Bar",),
        city="Austin",
        state="TX",
        listings=(),
        with_location=True,
    ):
        org = Organization(name=name, slug=name.lower().replace(" ", "-"), plan=plan)
        db.add(org)
        db.flush()

        location = None
        if with_location:
            location = Location(
                org_id=org.id,
                business_name=name,
                categories=list(categories) if categories is not None else None,
                city=city,
                state=state,
            )
            db.add(location)
            db.flush()
            for directory, sync_status in listings:
                db.add(Listing(
                    org_id=org.id, location_id=location.id,
                    directory=directory, sync_status=sync_status,
                ))
        db.commit()
        return org, location

    return _seed


@pytest.fixture
def seed_intelligence(db):
    def _seed(category, city, state, frequencies, model_provider="perplexity-sonar", sample_size=5,
              measured_at=None):
        for platform, freq in frequencies.items():
            db.add(CitationSourceIntelligence(
                business_category=category,
                city=city,
                state=state,
                platform=platform,
                model_provider=model_provider,
                citation_frequency=freq,
                sample_query=f"best {category} in {city} {state}",
                sample_size=sample_size,
                measured_at=measured_at or datetime.utcnow(),
            ))
        db.commit()

    return _seed


# ─── Answer engine fakes ─────────────────────────────────────────────────────

def answer_json(*urls):
    """A well-formed engine answer citing `urls` (None entries mean no source)."""
    return json.dumps({
        "recommendations": [
            {"business": f"Business {i}", "source_url": url} for i, url in enumerate(urls)
        ]
    })


class FakeAnswerEngine:
    """Scripted stand-in for PerplexityClient. Exceptions in the script are raised."""

    def __init__(self, answers, has_api_key=True):
        self.answers = list(answers)
        self.has_api_key = has_api_key
        self.prompts = []

    def ask(self, system, prompt):
        self.prompts.append(prompt)
        answer = self.answers.pop(0) if self.answers else answer_json()
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture
def no_sleep():
    calls = []
    def _sleep(seconds):
        calls.append(seconds)
    _sleep.calls = calls
    return _sleep


def days_ago(n):
    return datetime.utcnow() - timedelta(days=n)
