"""
Task Coordinator - execution planning and concurrent agent dispatch.

Turns a TaskAnalysis into an ExecutionPlan and runs it phase by phase:
- Sequential phases invoke agents one at a time and stop at the first failure
- Parallel phases invoke all agents concurrently under per-agent and
  engine-wide concurrency bounds
- Every invocation carries its own deadline and retry budget, so a slow or
  failing agent never takes its siblings down with it

Concurrency limits are shared across every task running on the same
coordinator.
"""

import asyncio
import contextlib
import time
from typing import Any, Dict, List, Optional

from .capabilities import DEFAULT_REGISTRY, AgentDomain, CapabilityRegistry
from .config_manager import ConfigManager, OrchestratorConfig
from .exceptions import AgentTimeoutError
from .invoker import AgentInvoker, InvocationContext, SimulatedAgentInvoker
from .logging_config import get_logger
from .models import (
    AgentResult,
    CoordinationPattern,
    ExecutionPhase,
    ExecutionPlan,
    QualityGate,
    RiskLevel,
    Task,
    TaskAnalysis,
)

logger = get_logger("coordinator")

SUCCESS_CRITERIA = (
    "All quality gates passed",
    "No critical errors in execution",
    "Agent confidence levels above threshold",
    "Task requirements fulfilled",
)


def _gates_for(gates: List[QualityGate], agents: List[AgentDomain], required_only: bool = False) -> List[str]:
    return [
        gate.id for gate in gates
        if (gate.domain is None or gate.domain in agents) and (gate.required or not required_only)
    ]


class _ConcurrencyBound:
    """Semaphore for one key plus the number of holders and waiters."""

    def __init__(self, limit: int):
        self.limit = limit
        self.semaphore = asyncio.Semaphore(limit)
        self.users = 0


class TaskCoordinator:
    """
    Builds and executes plans against an AgentInvoker.

    Args:
        config_manager: Source of agent timeouts, limits and retry settings
        registry: Capability table handed to the invoker
        invoker: Agent layer (defaults to SimulatedAgentInvoker)
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        registry: CapabilityRegistry = DEFAULT_REGISTRY,
        invoker: Optional[AgentInvoker] = None
    ):
        self.config_manager = config_manager
        self.registry = registry
        self.invoker = invoker or SimulatedAgentInvoker()

        # Semaphores are bound to the loop they were created on
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._bounds: Dict[Any, _ConcurrencyBound] = {}

        # State
        self._active_executions: Dict[str, str] = {}
        self._running_invocations: Dict[AgentDomain, int] = {}

        # Statistics
        self._completed_invocations = 0
        self._failed_invocations = 0
        self._timed_out_invocations = 0
        self._retried_invocations = 0

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def create_execution_plan(
        self,
        analysis: TaskAnalysis,
        config: Optional[OrchestratorConfig] = None
    ) -> ExecutionPlan:
        """
        Expand an analysis into ordered phases.

        Args:
            analysis: Routing decision for the task
            config: Config snapshot for timeout estimates (default: current)

        Returns:
            ExecutionPlan whose phase shape follows the coordination pattern
        """
        config = config or self.config_manager.get_config()
        pattern = analysis.coordination_pattern

        if pattern == CoordinationPattern.PARALLEL:
            phases = self._parallel_phases(analysis, config)
        elif pattern == CoordinationPattern.COLLABORATIVE:
            phases = self._collaborative_phases(analysis, config)
        else:
            phases = self._sequential_phases(analysis, config)

        plan = ExecutionPlan(
            task_id=analysis.task_id,
            phases=phases,
            total_estimated_time_ms=sum(phase.estimated_time_ms for phase in phases),
            external_dependencies=list(analysis.dependencies),
            risk_factors=self._identify_risk_factors(analysis),
            success_criteria=list(SUCCESS_CRITERIA),
        )

        logger.debug(
            f"Plan for {analysis.task_id}: {[p.phase_id for p in phases]} "
            f"(~{plan.total_estimated_time_ms:g}ms)"
        )
        return plan

    def _estimate_ms(self, agents: List[AgentDomain], config: OrchestratorConfig) -> float:
        total = 0.0
        for agent in agents:
            agent_config = config.agents.get(agent)
            if agent_config is not None:
                total += agent_config.timeout_ms
        return total

    def _sequential_phases(self, analysis: TaskAnalysis, config: OrchestratorConfig) -> List[ExecutionPhase]:
        phases = []
        previous: Optional[str] = None
        for n, agent in enumerate(analysis.agents, start=1):
            phase_id = f"sequential-{n}-{agent.value}"
            phases.append(ExecutionPhase(
                phase_id=phase_id,
                name=f"Sequential step {n}: {agent.value}",
                agents=[agent],
                coordination_pattern=CoordinationPattern.SEQUENTIAL,
                dependencies=[previous] if previous else [],
                estimated_time_ms=self._estimate_ms([agent], config),
                quality_gates=_gates_for(analysis.quality_gates, [agent]),
            ))
            previous = phase_id
        return phases

    def _parallel_phases(self, analysis: TaskAnalysis, config: OrchestratorConfig) -> List[ExecutionPhase]:
        agents = analysis.agents
        return [ExecutionPhase(
            phase_id="parallel-execution",
            name="Parallel Execution",
            agents=agents,
            coordination_pattern=CoordinationPattern.PARALLEL,
            estimated_time_ms=self._estimate_ms(agents, config),
            quality_gates=_gates_for(analysis.quality_gates, agents),
        )]

    def _collaborative_phases(self, analysis: TaskAnalysis, config: OrchestratorConfig) -> List[ExecutionPhase]:
        primary = [analysis.primary_agent]
        phases = [ExecutionPhase(
            phase_id="primary-analysis",
            name="Primary Agent Analysis",
            agents=primary,
            coordination_pattern=CoordinationPattern.SEQUENTIAL,
            estimated_time_ms=self._estimate_ms(primary, config),
            quality_gates=_gates_for(analysis.quality_gates, primary, required_only=True),
        )]

        secondaries = list(analysis.secondary_agents)
        if secondaries:
            phases.append(ExecutionPhase(
                phase_id="collaborative-execution",
                name="Collaborative Execution",
                agents=secondaries,
                coordination_pattern=CoordinationPattern.PARALLEL,
                dependencies=["primary-analysis"],
                estimated_time_ms=self._estimate_ms(secondaries, config),
                quality_gates=_gates_for(analysis.quality_gates, secondaries),
                requires_dependency_success=True,
            ))
        return phases

    def _identify_risk_factors(self, analysis: TaskAnalysis) -> List[str]:
        risks = []
        if analysis.risk_level == RiskLevel.HIGH:
            risks.append("High complexity task")
        if len(analysis.secondary_agents) > 2:
            risks.append("Multiple agent coordination required")
        if analysis.dependencies:
            risks.append("External dependencies present")
        return risks

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute_task(
        self,
        plan: ExecutionPlan,
        task: Task,
        config: Optional[OrchestratorConfig] = None,
        execution_id: Optional[str] = None
    ) -> List[AgentResult]:
        """
        Execute every phase of a plan in order.

        Args:
            plan: Plan produced by create_execution_plan
            task: Task the plan belongs to
            config: Config snapshot used for the whole execution
            execution_id: Correlation id for logs

        Returns:
            One AgentResult per (phase, agent) in plan order
        """
        if not plan.validate():
            raise ValueError(f"Execution plan for {plan.task_id} has out-of-order phase dependencies")

        config = config or self.config_manager.get_config()
        execution_id = execution_id or f"exec_{task.id}_{int(time.time() * 1000)}"

        self._active_executions[execution_id] = task.id
        results: List[AgentResult] = []
        phase_success: Dict[str, bool] = {}

        try:
            for phase in plan.phases:
                failed_deps = [
                    dep for dep in phase.dependencies
                    if phase.requires_dependency_success and not phase_success.get(dep, False)
                ]
                if failed_deps:
                    logger.warning(
                        f"[{execution_id}] Skipping phase {phase.phase_id}: "
                        f"dependency phase {', '.join(failed_deps)} failed"
                    )
                    phase_results = [
                        AgentResult.failure(
                            agent, task.id, f"skipped: dependency phase {', '.join(failed_deps)} failed"
                        )
                        for agent in phase.agents
                    ]
                else:
                    logger.debug(f"[{execution_id}] Phase {phase.phase_id} started: {[a.value for a in phase.agents]}")
                    phase_results = await self._execute_phase(phase, task, config, execution_id)

                phase_success[phase.phase_id] = all(result.success for result in phase_results)
                results.extend(phase_results)
        finally:
            self._active_executions.pop(execution_id, None)

        return results

    async def _execute_phase(
        self,
        phase: ExecutionPhase,
        task: Task,
        config: OrchestratorConfig,
        execution_id: str
    ) -> List[AgentResult]:
        if phase.coordination_pattern == CoordinationPattern.SEQUENTIAL:
            return await self._execute_sequential(phase, task, config, execution_id)

        # Each invocation catches its own failures, so gather never raises here
        return list(await asyncio.gather(*(
            self._invoke_agent(agent, task, config, execution_id, phase.phase_id)
            for agent in phase.agents
        )))

    async def _execute_sequential(
        self,
        phase: ExecutionPhase,
        task: Task,
        config: OrchestratorConfig,
        execution_id: str
    ) -> List[AgentResult]:
        results = []
        for index, agent in enumerate(phase.agents):
            result = await self._invoke_agent(agent, task, config, execution_id, phase.phase_id)
            results.append(result)

            if not result.success:
                remaining = phase.agents[index + 1:]
                if remaining:
                    logger.warning(
                        f"[{execution_id}] Phase {phase.phase_id} aborted after {agent.value} failed; "
                        f"{len(remaining)} agent(s) not run"
                    )
                results.extend(
                    AgentResult.failure(other, task.id, f"aborted: {agent.value} failed earlier in phase {phase.phase_id}")
                    for other in remaining
                )
                break
        return results

    @contextlib.asynccontextmanager
    async def _bounded(self, key: Any, limit: int):
        """Hold one slot of the bound for ``key``; a new limit applies once the key is idle."""
        loop = asyncio.get_running_loop()
        if loop is not self._loop:
            self._loop = loop
            self._bounds = {}

        bound = self._bounds.get(key)
        if bound is None or (bound.limit != limit and bound.users == 0):
            bound = _ConcurrencyBound(limit)
            self._bounds[key] = bound
        elif bound.limit != limit:
            logger.debug(f"Concurrency limit for {key} changes {bound.limit} -> {limit} once in-flight work drains")

        bound.users += 1
        try:
            async with bound.semaphore:
                yield
        finally:
            bound.users -= 1

    async def _invoke_agent(
        self,
        domain: AgentDomain,
        task: Task,
        config: OrchestratorConfig,
        execution_id: str,
        phase_id: str
    ) -> AgentResult:
        """Invoke one agent with concurrency bounds, deadline and retries; never raises."""
        agent_config = config.agents.get(domain)
        capability = self.registry.get(domain)

        if agent_config is None or not agent_config.enabled:
            logger.warning(f"[{execution_id}] Agent {domain.value} is disabled; not invoked")
            self._failed_invocations += 1
            return AgentResult.failure(domain, task.id, f"agent {domain.value} is disabled")

        if capability is None:
            logger.error(f"[{execution_id}] No capability registered for {domain.value}")
            self._failed_invocations += 1
            return AgentResult.failure(domain, task.id, f"invocation failed: no capability registered for {domain.value}")

        global_limit = max(1, config.orchestrator.max_concurrent_agents)
        agent_limit = max(1, agent_config.max_concurrency)
        timeout_ms = agent_config.timeout_ms
        attempts = 1 + max(0, config.orchestrator.retry_attempts)
        start = time.perf_counter()
        last_error = ""

        async with self._bounded("engine", global_limit):
            async with self._bounded(domain, agent_limit):
                self._running_invocations[domain] = self._running_invocations.get(domain, 0) + 1
                try:
                    for attempt in range(1, attempts + 1):
                        context = InvocationContext(execution_id=execution_id, phase_id=phase_id, attempt=attempt)
                        try:
                            result = await asyncio.wait_for(
                                self.invoker.invoke(task, domain, capability, agent_config, context),
                                timeout=timeout_ms / 1000
                            )
                            self._completed_invocations += 1
                            return result

                        except asyncio.TimeoutError as e:
                            self._timed_out_invocations += 1
                            last_error = str(AgentTimeoutError(domain, timeout_ms, original_error=e))
                            logger.warning(f"[{execution_id}] {last_error} (attempt {attempt}/{attempts})")

                        except Exception as e:
                            last_error = f"invocation failed: {type(e).__name__}: {e}"
                            logger.warning(f"[{execution_id}] Agent {domain.value} {last_error} (attempt {attempt}/{attempts})")

                        if attempt < attempts:
                            self._retried_invocations += 1
                finally:
                    self._running_invocations[domain] -= 1

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._failed_invocations += 1
        logger.error(f"[{execution_id}] Agent {domain.value} failed after {attempts} attempt(s): {last_error}")
        return AgentResult.failure(domain, task.id, last_error, execution_time_ms=elapsed_ms)

    def get_status(self) -> Dict[str, Any]:
        """Get current coordinator status."""
        config = self.config_manager.get_config()
        return {
            "active_executions": len(self._active_executions),
            "running_invocations": {d.value: n for d, n in self._running_invocations.items() if n},
            "completed_invocations": self._completed_invocations,
            "failed_invocations": self._failed_invocations,
            "timed_out_invocations": self._timed_out_invocations,
            "retried_invocations": self._retried_invocations,
            "max_concurrent_agents": config.orchestrator.max_concurrent_agents,
            "agent_limits": {d.value: a.max_concurrency for d, a in config.agents.items()},
            "active": bool(self._active_executions),
        }
