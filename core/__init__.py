"""
Side-effect-free building blocks: platform extraction, query generation,
gap scoring.
"""

from .platforms import PLATFORM_MAP, extract_platform
from .queries import (
    SAMPLE_QUERY_TEMPLATES, CITATION_SYSTEM_PROMPT,
    generate_sample_queries, build_citation_prompt, normalize_category_label,
    primary_category_label,
)
from .gap_score import (
    CITATION_RELEVANCE_THRESHOLD, calculate_citation_gap_score, round_half_up,
)

__all__ = [
    "PLATFORM_MAP", "extract_platform",
    "SAMPLE_QUERY_TEMPLATES", "CITATION_SYSTEM_PROMPT",
    "generate_sample_queries", "build_citation_prompt", "normalize_category_label",
    "primary_category_label",
    "CITATION_RELEVANCE_THRESHOLD", "calculate_citation_gap_score", "round_half_up",
]
