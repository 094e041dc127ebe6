"""Plan tier ordering used to gate who gets sampled and who sees gap scores."""

PLAN_TIERS = {"trial": 0, "starter": 1, "growth": 2, "agency": 3}


def plan_satisfies(plan: str, required: str) -> bool:
    """True when `plan` is at or above `required`. Unknown plans rank as trial."""
    return PLAN_TIERS.get((plan or "").lower(), 0) >= PLAN_TIERS.get((required or "").lower(), 0)
