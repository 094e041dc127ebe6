from .base import Agent, AgentResult
from .answer_engine import PerplexityClient, AnswerEngineError
from .citation_sampler import CitationSamplerAgent, run_citation_query, run_citation_sample
from .persister import write_citation_results
from .tuple_deriver import TupleDeriverAgent, TupleDerivationOutput, derive_tuples
from .orchestrator import CitationRunOrchestrator, CitationCronConfigError

__all__ = [
    "Agent", "AgentResult",
    "PerplexityClient", "AnswerEngineError",
    "CitationSamplerAgent", "run_citation_query", "run_citation_sample",
    "write_citation_results",
    "TupleDeriverAgent", "TupleDerivationOutput", "derive_tuples",
    "CitationRunOrchestrator", "CitationCronConfigError",
]
