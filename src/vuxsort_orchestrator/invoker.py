"""
Agent invocation interface.

The coordinator never performs domain work itself; it hands each
(task, domain) pair to an AgentInvoker and receives one AgentResult back.
Real agents plug in by subclassing AgentInvoker.
"""

import asyncio
import random
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .capabilities import AgentCapability, AgentDomain
from .config_manager import AgentConfig
from .exceptions import AgentInvocationError
from .logging_config import get_logger
from .models import AgentResult, AgentResultMetadata, Task, TaskComplexity

logger = get_logger("invoker")


@dataclass
class InvocationContext:
    """Per-invocation facts passed to the invoker."""
    execution_id: str
    phase_id: str
    attempt: int = 1
    extra: Dict[str, Any] = field(default_factory=dict)


class AgentInvoker:
    """
    Capability interface for performing a domain's work on a task.

    Implementations return an AgentResult or raise; raising (including
    AgentInvocationError) lets the coordinator retry. Deadlines are enforced
    by the caller, so implementations must be cancellable at await points.
    """

    async def invoke(
        self,
        task: Task,
        domain: AgentDomain,
        capability: AgentCapability,
        config: AgentConfig,
        context: InvocationContext
    ) -> AgentResult:
        raise NotImplementedError


# Base latency per domain in ms before complexity scaling
BASE_LATENCY_MS = {
    AgentDomain.CARD_SORT: 500,
    AgentDomain.ANALYTICS: 1000,
    AgentDomain.COLLABORATION: 700,
    AgentDomain.PARTICIPANT: 600,
    AgentDomain.FRONTEND_UX: 800,
    AgentDomain.INTEGRATION: 900,
}

COMPLEXITY_FACTOR = {
    TaskComplexity.SIMPLE: 1.0,
    TaskComplexity.MODERATE: 1.5,
    TaskComplexity.COMPLEX: 2.0,
}


class SimulatedAgentInvoker(AgentInvoker):
    """
    Stand-in agent layer that sleeps and reports plausible metadata.

    Args:
        time_scale: Multiplier applied to simulated latency (0.01 = 100x faster)
        base_confidence: Confidence reported by every successful invocation
        latency_overrides: Per-domain simulated latency in ms, bypassing scaling
        failures: Per-domain count of leading invocations that raise
        jitter: Fractional random variation of latency
    """

    def __init__(
        self,
        time_scale: float = 0.01,
        base_confidence: float = 0.85,
        latency_overrides: Optional[Mapping[AgentDomain, float]] = None,
        failures: Optional[Mapping[AgentDomain, int]] = None,
        jitter: float = 0.0
    ):
        self.time_scale = time_scale
        self.base_confidence = base_confidence
        self.latency_overrides = dict(latency_overrides or {})
        self._remaining_failures = dict(failures or {})
        self.jitter = jitter
        self.invocations: Dict[AgentDomain, int] = {}

    def latency_ms(self, task: Task, domain: AgentDomain) -> float:
        if domain in self.latency_overrides:
            return float(self.latency_overrides[domain])
        base = BASE_LATENCY_MS.get(domain, 500) * COMPLEXITY_FACTOR.get(task.complexity, 1.5)
        if self.jitter:
            base *= 1 + random.uniform(-self.jitter, self.jitter)
        return base * self.time_scale

    async def invoke(
        self,
        task: Task,
        domain: AgentDomain,
        capability: AgentCapability,
        config: AgentConfig,
        context: InvocationContext
    ) -> AgentResult:
        self.invocations[domain] = self.invocations.get(domain, 0) + 1
        start = time.perf_counter()

        await asyncio.sleep(self.latency_ms(task, domain) / 1000)

        if self._remaining_failures.get(domain, 0) > 0:
            self._remaining_failures[domain] -= 1
            raise AgentInvocationError(domain, f"simulated failure on attempt {context.attempt}")

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"Simulated {domain.value} for {task.id} in {elapsed_ms:.1f}ms")

        return AgentResult(
            domain=domain,
            task_id=task.id,
            success=True,
            output={
                "agent": domain.value,
                "task": task.id,
                "skills_applied": list(capability.primary_skills[:3]),
                "specializations": list(config.specializations),
                "summary": f"{domain.value} handled: {task.description[:60]}",
            },
            metadata=AgentResultMetadata(
                execution_time_ms=elapsed_ms,
                resources_used=list(capability.resources),
                confidence=self.base_confidence,
            ),
        )
