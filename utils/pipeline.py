"""
Pipeline runner — wires the citation agents to settings, the database and the
answer engine, and runs one batch pass.

Architecture:
  load eligible tenants → TupleDeriverAgent → (CitationSamplerAgent → persister) per tuple
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional

from sqlalchemy.orm import Session

from agents.answer_engine import PerplexityClient
from agents.citation_sampler import CitationSamplerAgent
from agents.orchestrator import CitationRunOrchestrator
from config.settings import Settings, settings
from core.plans import PLAN_TIERS, plan_satisfies
from db.repository import load_eligible_tenants
from models.schemas import RunSummary, TenantRecord

logger = logging.getLogger(__name__)


def eligible_plans(min_plan: Optional[str] = None) -> List[str]:
    required = min_plan or settings.CITATION_MIN_PLAN
    return [plan for plan in PLAN_TIERS if plan_satisfies(plan, required)]


def load_citation_tenants(db: Session) -> List[TenantRecord]:
    return load_eligible_tenants(db, eligible_plans())


def kill_switch_engaged() -> bool:
    """
    Module settings flag, or a fresh read of the environment / .env so an
    operator can stop a run in flight. Both go through the same Settings
    parsing ("1", "true", "yes", "on").
    """
    return settings.STOP_CITATION_CRON or Settings().STOP_CITATION_CRON


def run_citation_cron(
    client: Any = None,
    session_factory: Optional[Callable[[], Session]] = None,
    sleep: Callable[[float], None] = time.sleep,
    kill_switch: Callable[[], bool] = kill_switch_engaged,
    tenant_loader: Callable[[Session], List[TenantRecord]] = load_citation_tenants,
) -> RunSummary:
    """
    One full citation intelligence pass.

    Raises
    ------
    CitationCronConfigError
        The answer-engine key is missing; nothing was sampled.
    """
    client = client if client is not None else PerplexityClient()

    orchestrator = CitationRunOrchestrator(
        sampler=CitationSamplerAgent(client=client, sleep=sleep),
        tenant_loader=tenant_loader,
        has_credential=lambda: bool(getattr(client, "has_api_key", False)),
        kill_switch=kill_switch,
        session_factory=session_factory,
        model_provider=settings.CITATION_MODEL_PROVIDER,
    )
    return orchestrator.execute()
