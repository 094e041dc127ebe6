"""
Citation Run Orchestrator
-------------------------
One batch pass over every tuple derived from eligible tenants:

  kill switch? → halted, nothing sampled
  no answer-engine key? → CitationCronConfigError (fatal, nothing sampled)
  TupleDeriverAgent → for each unique tuple, one at a time:
        re-check kill switch
        CitationSamplerAgent → write_citation_results
        failure → recorded in errors, next tuple

Only the summary counters and the errors list are shared across tuples, and
both are append/add only.
"""

import logging
import time
from typing import Any, Callable, List, Optional, Set

from sqlalchemy.orm import Session

from agents.base import Agent
from agents.persister import write_citation_results
from agents.tuple_deriver import TupleDeriverAgent
from db.database import get_db
from db.repository import log_cron_complete, log_cron_failed, log_cron_start
from models.schemas import RunError, RunSummary, TenantRecord

logger = logging.getLogger(__name__)

CRON_NAME = "citation"


class CitationCronConfigError(RuntimeError):
    """A run precondition is not met; nothing was sampled."""


class CitationRunOrchestrator:
    """
    Parameters
    ----------
    sampler : Agent
        Runs one tuple's query set; `execute(tuple)` must never raise.
    tenant_loader : callable(Session) -> List[TenantRecord]
        Returns exactly the tenants to consider (eligibility already applied).
    has_credential : callable() -> bool
        Whether the answer engine is usable.
    kill_switch : callable() -> bool
        Checked before the run and again between tuples.
    session_factory : callable() -> Session, optional
        Defaults to the application SessionLocal.
    """

    def __init__(
        self,
        sampler: Agent,
        tenant_loader: Callable[[Session], List[TenantRecord]],
        has_credential: Callable[[], bool],
        kill_switch: Callable[[], bool] = lambda: False,
        session_factory: Optional[Callable[[], Session]] = None,
        writer: Callable[..., int] = write_citation_results,
        model_provider: Optional[str] = None,
    ):
        self.sampler = sampler
        self.deriver = TupleDeriverAgent()
        self.tenant_loader = tenant_loader
        self.has_credential = has_credential
        self.kill_switch = kill_switch
        self.session_factory = session_factory
        self.writer = writer
        self.model_provider = model_provider
        self.logger = logging.getLogger("orchestrator")

    def execute(self) -> RunSummary:
        if self.kill_switch():
            self.logger.warning("Citation cron halted by kill switch.")
            return RunSummary(ok=True, halted=True)

        if not self.has_credential():
            self.logger.error("PERPLEXITY_API_KEY not configured")
            raise CitationCronConfigError("PERPLEXITY_API_KEY not configured")

        total_start = time.time()
        with get_db(self.session_factory) as db:
            entry = log_cron_start(db, CRON_NAME)
            try:
                tenants = self.tenant_loader(db)
                summary = self.process(db, tenants)
            except Exception as e:
                self.logger.error(f"❌ Citation run failed: {e}")
                db.rollback()
                log_cron_failed(db, entry, str(e))
                raise
            log_cron_complete(db, entry, summary.to_dict())

        self.logger.info(f"✅ {summary.summary()} in {time.time() - total_start:.2f}s")
        return summary

    def process(self, db: Session, tenants: List[TenantRecord]) -> RunSummary:
        summary = RunSummary()

        derived = self.deriver.execute(tenants)
        if not derived.success:
            raise RuntimeError(f"Tuple derivation failed: {derived.error}")
        derivation = derived.data

        summary.orgs_processed += derivation.orgs_processed
        summary.orgs_skipped += derivation.orgs_skipped
        summary.errors.extend(derivation.skips)

        categories: Set[str] = set()
        metros: Set[str] = set()
        total = len(derivation.tuples)

        for i, target in enumerate(derivation.tuples, 1):
            if i > 1 and self.kill_switch():
                self.logger.warning(f"Kill switch set mid-run; stopping before tuple {i}/{total}")
                summary.halted = True
                break

            self.logger.info(f"  [{i}/{total}] {target}")
            result = self.sampler.execute(target)
            if not result.success:
                summary.errors.append(RunError(reason=result.error or "sampling failed", tuple=target))
                continue

            sample = result.data
            summary.queries_run += sample.successful_queries
            summary.ambiguous_responses += sample.ambiguous_responses

            try:
                written = self._persist(db, target, sample)
            except Exception as e:
                db.rollback()
                self.logger.error(f"  ❌ Persist failed for {target}: {e}")
                summary.errors.append(RunError(reason=str(e), tuple=target))
                continue

            summary.platforms_found += written
            categories.add(target.category)
            metros.add(target.metro)

        summary.categories_processed = len(categories)
        summary.metros_processed = len(metros)
        return summary

    def _persist(self, db: Session, target: Any, sample: Any) -> int:
        if sample.successful_queries <= 0:
            return 0
        return self.writer(
            db,
            target.category,
            target.city,
            target.state,
            sample.platform_counts,
            sample.successful_queries,
            sample.sample_query,
            model_provider=self.model_provider,
        )
