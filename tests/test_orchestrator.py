"""
End-to-end batch runs: orchestration, isolation, kill switch, cron log.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from agents.answer_engine import AnswerEngineError
from agents.base import Agent
from agents.orchestrator import CitationRunOrchestrator, CitationCronConfigError
from db.models import CitationSourceIntelligence, CronRunLog
from models.schemas import CitationSample, DiscoveryTuple, TenantLocation, TenantRecord
from config.settings import settings
from utils.pipeline import run_citation_cron, eligible_plans, kill_switch_engaged
from conftest import answer_json, FakeAnswerEngine


# ─── Fakes ───────────────────────────────────────────────────────────────────

class FakeSampler(Agent):
    def __init__(self, fail_on=(), successful_queries=4):
        super().__init__(name="FakeSampler")
        self.fail_on = set(fail_on)
        self.successful_queries = successful_queries
        self.seen = []

    def run(self, target):
        self.seen.append(target)
        if target.category in self.fail_on:
            raise RuntimeError("answer engine unavailable")
        return CitationSample(
            platform_counts={"yelp": 3, "google": 1} if self.successful_queries else {},
            successful_queries=self.successful_queries,
            sample_query=f"best {target.category} in {target.city} {target.state}",
            queries_attempted=5,
        )


def tenant(org_id, categories, city="Austin", state="TX"):
    return TenantRecord(
        org_id=org_id, plan="growth",
        location=TenantLocation(categories=categories, city=city, state=state),
    )


def switch(*states):
    """Kill switch returning `states` in order, then False."""
    remaining = list(states)
    calls = []

    def _check():
        calls.append(1)
        return remaining.pop(0) if remaining else False

    _check.calls = calls
    return _check


@pytest.fixture
def make_orchestrator(session_factory):
    def _make(sampler, tenants, has_credential=True, kill_switch=None):
        return CitationRunOrchestrator(
            sampler=sampler,
            tenant_loader=lambda db: tenants,
            has_credential=lambda: has_credential,
            kill_switch=kill_switch or (lambda: False),
            session_factory=session_factory,
            model_provider="perplexity-sonar",
        )
    return _make


# ─── Orchestrator ────────────────────────────────────────────────────────────

class TestCitationRunOrchestrator:
    def test_shared_tuple_sampled_once(self, make_orchestrator, db):
        sampler = FakeSampler()
        summary = make_orchestrator(sampler, [
            tenant("org-1", ["Restaurant > Hookah Bar"]),
            tenant("org-2", ["hookah bar"]),
        ]).execute()

        assert len(sampler.seen) == 1
        assert summary.ok is True
        assert summary.orgs_processed == 2
        assert summary.queries_run == 4
        assert summary.platforms_found == 2
        assert summary.categories_processed == 1
        assert summary.metros_processed == 1
        assert db.query(CitationSourceIntelligence).count() == 2

    def test_failed_tuple_is_isolated(self, make_orchestrator, db):
        sampler = FakeSampler(fail_on={"hookah bar"})
        summary = make_orchestrator(sampler, [
            tenant("org-1", ["Hookah Bar"]),
            tenant("org-2", ["Sushi"], city="Dallas"),
        ]).execute()

        assert len(sampler.seen) == 2
        assert summary.ok is True
        assert summary.platforms_found == 2
        assert [e.to_dict() for e in summary.errors] == [{
            "tuple": {"category": "hookah bar", "city": "Austin", "state": "TX"},
            "reason": "answer engine unavailable",
        }]
        rows = db.query(CitationSourceIntelligence).all()
        assert {r.business_category for r in rows} == {"sushi"}

    def test_skipped_orgs_reported(self, make_orchestrator):
        summary = make_orchestrator(FakeSampler(), [
            TenantRecord(org_id="org-1", plan="growth", location=None),
            tenant("org-2", []),
            tenant("org-3", ["Hookah Bar"]),
        ]).execute()

        assert summary.orgs_skipped == 2
        assert summary.orgs_processed == 1
        assert [e.to_dict() for e in summary.errors] == [
            {"org_id": "org-1", "reason": "no_location"},
            {"org_id": "org-2", "reason": "no_category"},
        ]

    def test_zero_successful_queries_writes_nothing(self, make_orchestrator, db):
        summary = make_orchestrator(FakeSampler(successful_queries=0), [tenant("org-1", ["Hookah Bar"])]).execute()
        assert summary.queries_run == 0
        assert summary.platforms_found == 0
        assert db.query(CitationSourceIntelligence).count() == 0

    def test_kill_switch_before_start(self, make_orchestrator, db):
        sampler = FakeSampler()
        summary = make_orchestrator(sampler, [tenant("org-1", ["Hookah Bar"])], kill_switch=lambda: True).execute()

        assert summary.halted is True
        assert summary.to_dict() == {
            "ok": True, "halted": True,
            "orgs_processed": 0, "orgs_skipped": 0, "queries_run": 0, "platforms_found": 0,
            "categories_processed": 0, "metros_processed": 0, "ambiguous_responses": 0,
            "errors": [],
        }
        assert sampler.seen == []
        assert db.query(CronRunLog).count() == 0

    def test_kill_switch_checked_before_credential(self, make_orchestrator):
        summary = make_orchestrator(FakeSampler(), [], has_credential=False, kill_switch=lambda: True).execute()
        assert summary.halted is True

    def test_kill_switch_mid_run_stops_before_next_tuple(self, make_orchestrator):
        sampler = FakeSampler()
        kill = switch(False, True)
        summary = make_orchestrator(sampler, [
            tenant("org-1", ["sushi", "tacos", "ramen"]),
        ], kill_switch=kill).execute()

        assert [t.category for t in sampler.seen] == ["sushi"]
        assert summary.halted is True
        assert summary.to_dict()["halted"] is True
        assert summary.platforms_found == 2

    def test_missing_credential_is_fatal(self, make_orchestrator, db):
        sampler = FakeSampler()
        with pytest.raises(CitationCronConfigError, match="PERPLEXITY_API_KEY"):
            make_orchestrator(sampler, [tenant("org-1", ["Hookah Bar"])], has_credential=False).execute()
        assert sampler.seen == []
        assert db.query(CronRunLog).count() == 0

    def test_cron_run_logged(self, make_orchestrator, db):
        make_orchestrator(FakeSampler(), [tenant("org-1", ["Hookah Bar"])]).execute()
        entry = db.query(CronRunLog).one()
        assert entry.cron_name == "citation"
        assert entry.status == "success"
        assert entry.finished_at is not None
        assert entry.duration_ms >= 0
        assert entry.summary["platforms_found"] == 2

    def test_loader_failure_logged_and_raised(self, session_factory, db):
        def broken_loader(session):
            raise RuntimeError("tenant query failed")

        orchestrator = CitationRunOrchestrator(
            sampler=FakeSampler(),
            tenant_loader=broken_loader,
            has_credential=lambda: True,
            session_factory=session_factory,
        )
        with pytest.raises(RuntimeError, match="tenant query failed"):
            orchestrator.execute()

        entry = db.query(CronRunLog).one()
        assert entry.status == "failed"
        assert "tenant query failed" in entry.error_message


# ─── Pipeline runner ─────────────────────────────────────────────────────────

class TestRunCitationCron:
    def test_eligible_plans(self):
        assert eligible_plans("growth") == ["growth", "agency"]
        assert eligible_plans("starter") == ["starter", "growth", "agency"]

    def test_only_eligible_plans_are_sampled(self, seed_org, session_factory, db, no_sleep):
        seed_org(plan="growth", name="Cloud Nine")
        seed_org(plan="agency", name="Smoke Lounge", categories=["Hookah Bar"])
        seed_org(plan="trial", name="Trial Cafe", categories=["Cafe"])
        seed_org(plan="growth", name="Nowhere Inc", with_location=False)

        client = FakeAnswerEngine([
            answer_json("https://www.yelp.com/biz/a", "https://www.tripadvisor.com/r/a"),
            answer_json("https://www.yelp.com/biz/b"),
            AnswerEngineError("timeout"),
            answer_json("https://www.yelp.com/biz/c"),
            answer_json(),
        ])
        summary = run_citation_cron(
            client=client,
            session_factory=session_factory,
            sleep=no_sleep,
            kill_switch=lambda: False,
        )

        assert summary.orgs_processed == 2
        assert summary.orgs_skipped == 1
        assert summary.queries_run == 4
        assert summary.platforms_found == 2
        assert len(client.prompts) == 5
        assert len(no_sleep.calls) == 5

        rows = {r.platform: r for r in db.query(CitationSourceIntelligence).all()}
        assert rows["yelp"].business_category == "hookah bar"
        assert rows["yelp"].citation_frequency == pytest.approx(0.75)
        assert rows["tripadvisor"].citation_frequency == pytest.approx(0.25)
        assert rows["yelp"].sample_size == 4

    def test_missing_key_refuses_to_run(self, session_factory, no_sleep):
        with pytest.raises(CitationCronConfigError):
            run_citation_cron(
                client=FakeAnswerEngine([], has_api_key=False),
                session_factory=session_factory,
                sleep=no_sleep,
                kill_switch=lambda: False,
            )


class TestKillSwitch:
    @pytest.fixture(autouse=True)
    def flag_off(self, monkeypatch):
        monkeypatch.setattr(settings, "STOP_CITATION_CRON", False)
        monkeypatch.delenv("STOP_CITATION_CRON", raising=False)

    def test_off_by_default(self):
        assert kill_switch_engaged() is False

    @pytest.mark.parametrize("value,expected", [
        ("1", True), ("true", True), ("yes", True), ("on", True),
        ("0", False), ("false", False), ("no", False),
    ])
    def test_live_environment_is_read(self, monkeypatch, value, expected):
        monkeypatch.setenv("STOP_CITATION_CRON", value)
        assert kill_switch_engaged() is expected

    def test_settings_flag(self, monkeypatch):
        monkeypatch.setattr(settings, "STOP_CITATION_CRON", True)
        assert kill_switch_engaged() is True


class TestAgentExecute:
    def test_failure_becomes_result(self):
        result = FakeSampler(fail_on={"sushi"}).execute(DiscoveryTuple("sushi", "Austin", "TX"))
        assert result.success is False
        assert result.error == "answer engine unavailable"
        assert result.data is None
        assert result.duration_seconds >= 0

    def test_success_carries_output(self):
        result = FakeSampler().execute(DiscoveryTuple("sushi", "Austin", "TX"))
        assert result.success is True
        assert result.error is None
        assert result.data.platform_counts == {"yelp": 3, "google": 1}
        assert result.finished_at >= result.started_at
