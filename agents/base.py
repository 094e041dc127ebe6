"""
Base Agent class
Citation Intelligence Engine

Agents are the per-unit workers of a citation run (tuple derivation, sampling).
The orchestrator calls them through `execute()` so one failing tuple becomes a
failed AgentResult instead of an exception that ends the run.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from dataclasses import dataclass
from datetime import datetime
import logging
import traceback


@dataclass
class AgentResult:
    """Outcome of one `Agent.execute` call."""
    agent_name: str
    success: bool
    started_at: datetime
    finished_at: datetime
    data: Any = None
    error: Optional[str] = None

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def __repr__(self):
        status = "✅" if self.success else "❌"
        return f"{status} {self.agent_name} ({self.duration_seconds:.1f}s)"


class Agent(ABC):
    """
    Subclasses implement `run(data)`; callers that need failure isolation
    go through `execute(data)`, which never raises.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"agent.{name}")

    @abstractmethod
    def run(self, data: Any) -> Any:
        raise NotImplementedError

    def execute(self, data: Any) -> AgentResult:
        started_at = datetime.utcnow()
        self.logger.debug(f"[{self.name}] Starting on {data!s:.80}")
        try:
            output = self.run(data)
        except Exception as e:
            result = AgentResult(
                agent_name=self.name,
                success=False,
                started_at=started_at,
                finished_at=datetime.utcnow(),
                error=str(e),
            )
            self.logger.error(
                f"[{self.name}] Failed after {result.duration_seconds:.2f}s: {e}\n{traceback.format_exc()}"
            )
            return result

        result = AgentResult(
            agent_name=self.name,
            success=True,
            started_at=started_at,
            finished_at=datetime.utcnow(),
            data=output,
        )
        self.logger.info(f"[{self.name}] Completed in {result.duration_seconds:.2f}s")
        return result

    def __repr__(self):
        return f"<Agent: {self.name}>"
