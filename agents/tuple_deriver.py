"""
Tuple Deriver Agent
-------------------
Turns eligible tenants into the set of (category, city, state) tuples to
sample this run. Market intelligence is shared, so a tuple is sampled once no
matter how many tenants (or how many of one tenant's categories) map to it.

Per tenant:
  no primary location           → skip "no_location"
  no non-blank category         → skip "no_category"
  no city                       → skip "no_city"
  otherwise one tuple per normalized category

Eligibility (plan tier) is decided before this agent runs.

Input  : List[TenantRecord]
Output : TupleDerivationOutput
"""

from dataclasses import dataclass, field
from typing import Dict, List

from agents.base import Agent
from core.queries import normalize_category_label
from models.schemas import DiscoveryTuple, RunError, TenantRecord


@dataclass
class TupleDerivationOutput:
    tuples: List[DiscoveryTuple] = field(default_factory=list)          # first-seen order
    tuple_orgs: Dict[DiscoveryTuple, List[str]] = field(default_factory=dict)
    orgs_processed: int = 0
    orgs_skipped: int = 0
    skips: List[RunError] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"Tuple derivation: {len(self.tuples)} unique tuples from "
            f"{self.orgs_processed} orgs ({self.orgs_skipped} skipped)"
        )


def derive_tuples(tenants: List[TenantRecord]) -> TupleDerivationOutput:
    out = TupleDerivationOutput()

    for tenant in tenants:
        location = tenant.location
        if location is None:
            out.skips.append(RunError(reason="no_location", org_id=tenant.org_id))
            out.orgs_skipped += 1
            continue

        raw_categories = [c for c in (location.categories or []) if c and str(c).strip()]
        if not raw_categories:
            out.skips.append(RunError(reason="no_category", org_id=tenant.org_id))
            out.orgs_skipped += 1
            continue

        city = (location.city or "").strip()
        if not city:
            out.skips.append(RunError(reason="no_city", org_id=tenant.org_id))
            out.orgs_skipped += 1
            continue
        state = (location.state or "").strip()

        for raw in raw_categories:
            key = DiscoveryTuple(category=normalize_category_label(str(raw)), city=city, state=state)
            orgs = out.tuple_orgs.get(key)
            if orgs is None:
                out.tuple_orgs[key] = [tenant.org_id]
                out.tuples.append(key)
            elif tenant.org_id not in orgs:
                orgs.append(tenant.org_id)

        out.orgs_processed += 1

    return out


class TupleDeriverAgent(Agent):
    """
    Agent 1: Tuple Deriver

    Input:  List[TenantRecord]
    Output: TupleDerivationOutput
    """

    def __init__(self):
        super().__init__(name="TupleDeriverAgent")

    def run(self, tenants: List[TenantRecord]) -> TupleDerivationOutput:
        output = derive_tuples(tenants)
        self.logger.info(output.summary())
        for skip in output.skips:
            self.logger.info(f"  skipped org {skip.org_id}: {skip.reason}")
        return output
