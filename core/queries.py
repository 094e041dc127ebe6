"""
Discovery query generation and category normalization.

The number of sample queries is the denominator of every persisted
citation_frequency: SAMPLE_QUERY_TEMPLATES must stay at five entries unless
the stored frequencies are recomputed.
"""

import re
from typing import List, Optional, Sequence, Tuple

SAMPLE_QUERY_TEMPLATES: Tuple[str, ...] = (
    "best {category} in {city} {state}",
    "top {category} {city}",
    "{category} {city} {state} recommendations",
    "where to find {category} in {city}",
    "{category} near {city}",
)

CITATION_SYSTEM_PROMPT = (
    "You are a local business search assistant. Always respond with valid JSON only."
)

DEFAULT_CATEGORY = "business"
MAX_CATEGORY_LENGTH = 100

_CATEGORY_SEPARATOR = re.compile(r"[>/]")
_WHITESPACE = re.compile(r"\s+")


def generate_sample_queries(category: str, city: str, state: str) -> List[str]:
    """Build the fixed set of discovery queries for one (category, city, state)."""
    return [
        template.format(category=category, city=city, state=state)
        for template in SAMPLE_QUERY_TEMPLATES
    ]


def build_citation_prompt(query_text: str) -> str:
    return f"""Answer this question a local person might ask: '{query_text}'

List ALL businesses you would recommend.
For each business, include the source URL where you found the information.

Return ONLY valid JSON:
{{
  "recommendations": [
    {{ "business": "Business Name", "source_url": "https://..." }},
    {{ "business": "Business Name 2", "source_url": "https://..." }}
  ]
}}

Include every source URL. If multiple sources, list the primary one per business."""


def normalize_category_label(raw: Optional[str]) -> str:
    """
    Canonicalize a directory-style category label.

    "Restaurant > Hookah Bar"           -> "hookah bar"
    "food_service > indian_restaurant"  -> "indian restaurant"
    "Food/Italian Restaurant"           -> "italian restaurant"
    None / ""                           -> "business"
    """
    if not raw or not raw.strip():
        return DEFAULT_CATEGORY

    segments = [s for s in _CATEGORY_SEPARATOR.split(raw) if s.strip()]
    if not segments:
        return DEFAULT_CATEGORY

    label = segments[-1].replace("_", " ")
    label = _WHITESPACE.sub(" ", label).strip().lower()
    label = label[:MAX_CATEGORY_LENGTH].strip()
    return label or DEFAULT_CATEGORY


def primary_category_label(categories: Optional[Sequence[str]]) -> str:
    """Normalized first non-blank category; blank entries are never sampled."""
    for raw in categories or []:
        if raw and str(raw).strip():
            return normalize_category_label(str(raw))
    return DEFAULT_CATEGORY
