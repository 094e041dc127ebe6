"""
Citation Sampler Agent
----------------------
Asks the answer engine the fixed set of discovery queries for one tuple and
counts which platforms its recommendations cite.

  For each of the 5 queries (sequential, never parallel):
    run query → on success: successful_queries += 1, remember first query
              → each distinct platform cited by the query: count += 1
    sleep CITATION_QUERY_DELAY_SECONDS (always, even after a failure)

A platform is counted at most once per query, even when one answer cites
several of its URLs (three Yelp pages are one Yelp citation). So
count / successful_queries is the fraction of answers that cited it.

Input  : DiscoveryTuple
Output : CitationSample
"""

import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from agents.base import Agent
from core.platforms import extract_platform
from core.queries import CITATION_SYSTEM_PROMPT, build_citation_prompt, generate_sample_queries
from config.settings import settings
from models.schemas import CitationQueryResult, CitationSample, DiscoveryTuple

logger = logging.getLogger(__name__)


# ─── Response schema ─────────────────────────────────────────────────────────


class Recommendation(BaseModel):
    business: str
    source_url: Optional[str] = None


class CitationAnswer(BaseModel):
    recommendations: List[Recommendation]


_CODE_FENCE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def parse_citation_answer(text: str) -> CitationAnswer:
    """Validate the engine's JSON answer. Raises ValidationError on anything else."""
    m = _CODE_FENCE.match(text or "")
    payload = m.group(1) if m else (text or "")
    return CitationAnswer.model_validate_json(payload)


# ─── Query Runner ────────────────────────────────────────────────────────────


def run_citation_query(query_text: str, client: Any = None) -> CitationQueryResult:
    """
    Issue one discovery query and return the source URLs it cites.

    Missing credential and unparseable answers both come back as
    success=True with no URLs; the latter is flagged parse_failed.
    Transport errors from the client propagate to the caller.
    """
    if client is None or not getattr(client, "has_api_key", False):
        return CitationQueryResult(query_text=query_text, cited_urls=[], success=True)

    text = client.ask(CITATION_SYSTEM_PROMPT, build_citation_prompt(query_text))

    try:
        answer = parse_citation_answer(text)
    except ValidationError as e:
        logger.warning(
            f"Unparseable answer for '{query_text}' ({e.error_count()} errors): "
            f"{(text or '')[:120]!r}"
        )
        return CitationQueryResult(query_text=query_text, cited_urls=[], success=True, parse_failed=True)

    cited_urls = [r.source_url for r in answer.recommendations if r.source_url is not None]
    return CitationQueryResult(query_text=query_text, cited_urls=cited_urls, success=True)


# ─── CitationSamplerAgent ────────────────────────────────────────────────────


class CitationSamplerAgent(Agent):
    """
    Agent 2: Citation Sampler

    Input:  DiscoveryTuple
    Output: CitationSample
    """

    def __init__(
        self,
        client: Any = None,
        delay_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        query_runner: Callable[[str, Any], CitationQueryResult] = run_citation_query,
        platform_map: Optional[Dict[str, str]] = None,
    ):
        super().__init__(name="CitationSamplerAgent")
        self.client = client
        self.delay_seconds = (
            settings.CITATION_QUERY_DELAY_SECONDS if delay_seconds is None else delay_seconds
        )
        self._sleep = sleep
        self._query_runner = query_runner
        self.platform_map = platform_map

    def run(self, target: DiscoveryTuple) -> CitationSample:
        queries = generate_sample_queries(target.category, target.city, target.state)
        platform_counts: Dict[str, int] = {}
        successful_queries = 0
        ambiguous = 0
        sample_query: Optional[str] = None

        for query_text in queries:
            try:
                result = self._query_runner(query_text, self.client)
            except Exception as e:
                self.logger.warning(f"  Query failed, skipping: '{query_text}' — {e}")
                result = None

            if result is not None and result.success:
                successful_queries += 1
                if sample_query is None:
                    sample_query = query_text
                if result.parse_failed:
                    ambiguous += 1

                platforms = {extract_platform(url, self.platform_map) for url in result.cited_urls}
                platforms.discard(None)
                for platform in sorted(platforms):
                    platform_counts[platform] = platform_counts.get(platform, 0) + 1

            self._sleep(self.delay_seconds)

        self.logger.info(
            f"  → {target}: {successful_queries}/{len(queries)} queries ok, "
            f"{len(platform_counts)} platforms cited"
            + (f", {ambiguous} unparseable" if ambiguous else "")
        )
        return CitationSample(
            platform_counts=platform_counts,
            successful_queries=successful_queries,
            sample_query=sample_query,
            queries_attempted=len(queries),
            ambiguous_responses=ambiguous,
        )


def run_citation_sample(
    category: str,
    city: str,
    state: str,
    client: Any = None,
    **agent_kwargs,
) -> CitationSample:
    """Functional entry point: sample one (category, city, state) tuple."""
    agent = CitationSamplerAgent(client=client, **agent_kwargs)
    return agent.run(DiscoveryTuple(category=category, city=city, state=state))
