"""
Task Coordinator Tests.

Tests plan construction and execution:
- Plan shapes per coordination pattern
- Per-invocation timeouts that leave siblings untouched
- Retries, sequential abort and dependency-phase skipping
- Disabled agents and concurrency bounds
"""

import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from vuxsort_orchestrator import (
    AgentDomain,
    AgentInvoker,
    AgentResult,
    AgentResultMetadata,
    ConfigManager,
    CoordinationPattern,
    ExecutionPhase,
    ExecutionPlan,
    SimulatedAgentInvoker,
    Task,
    TaskAnalyzer,
    TaskCoordinator,
)


def make_plan(phases):
    return ExecutionPlan(task_id="t-1", phases=phases, total_estimated_time_ms=0)


def parallel_phase(agents, phase_id="parallel-execution"):
    return ExecutionPhase(
        phase_id=phase_id,
        name="Parallel",
        agents=agents,
        coordination_pattern=CoordinationPattern.PARALLEL,
    )


def sequential_phase(agents, phase_id="sequential-1", dependencies=None, requires_success=False):
    return ExecutionPhase(
        phase_id=phase_id,
        name="Sequential",
        agents=agents,
        coordination_pattern=CoordinationPattern.SEQUENTIAL,
        dependencies=list(dependencies or []),
        requires_dependency_success=requires_success,
    )


class TrackingInvoker(AgentInvoker):
    """Records call order and peak concurrency."""

    def __init__(self, delay=0.02, fail=()):
        self.delay = delay
        self.fail = set(fail)
        self.calls = []
        self.running = 0
        self.peak = 0
        self.peak_by_domain = {}
        self._running_by_domain = {}

    async def invoke(self, task, domain, capability, config, context):
        self.calls.append(domain)
        self.running += 1
        self._running_by_domain[domain] = self._running_by_domain.get(domain, 0) + 1
        self.peak = max(self.peak, self.running)
        self.peak_by_domain[domain] = max(self.peak_by_domain.get(domain, 0), self._running_by_domain[domain])
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.running -= 1
            self._running_by_domain[domain] -= 1

        if domain in self.fail:
            return AgentResult.failure(domain, task.id, "reported failure")
        return AgentResult(domain, task.id, True, metadata=AgentResultMetadata(confidence=0.9))


@pytest.fixture
def task():
    return Task(id="t-1", description="Card sort categories with similarity matrix analytics")


class TestPlanning:
    """Execution plan construction."""

    @pytest.fixture
    def coordinator(self):
        return TaskCoordinator(ConfigManager())

    def test_sequential_plan_one_phase_per_agent(self, coordinator):
        analysis = TaskAnalyzer().determine_coordination(
            Task(id="t", description="Create basic card sorting interface", requirements=["Drag and drop cards"])
        )

        plan = coordinator.create_execution_plan(analysis)

        assert [phase.phase_id for phase in plan.phases] == ["sequential-1-card-sort"]
        assert plan.phases[0].estimated_time_ms == 30000
        assert plan.total_estimated_time_ms == 30000
        assert plan.phases[0].quality_gates == ["type-safety"]
        assert plan.validate()

    def test_parallel_plan_single_phase(self, coordinator, task):
        analysis = TaskAnalyzer().determine_coordination(task)

        plan = coordinator.create_execution_plan(analysis)

        assert len(plan.phases) == 1
        phase = plan.phases[0]
        assert phase.phase_id == "parallel-execution"
        assert phase.coordination_pattern == CoordinationPattern.PARALLEL
        assert phase.agents == [AgentDomain.ANALYTICS, AgentDomain.CARD_SORT]
        assert phase.dependencies == []
        assert phase.estimated_time_ms == 45000 + 30000
        assert phase.quality_gates == ["type-safety", "analytics-validation"]

    def test_collaborative_plan_has_join_point(self, coordinator):
        analysis = TaskAnalyzer().determine_coordination(
            Task(id="t", description="Real-time collaboration with analytics and accessibility")
        )
        assert analysis.coordination_pattern == CoordinationPattern.COLLABORATIVE

        plan = coordinator.create_execution_plan(analysis)

        primary, joined = plan.phases
        assert primary.phase_id == "primary-analysis"
        assert primary.agents == [analysis.primary_agent]
        assert joined.phase_id == "collaborative-execution"
        assert joined.dependencies == ["primary-analysis"]
        assert joined.requires_dependency_success is True
        assert joined.agents == analysis.secondary_agents
        assert plan.total_estimated_time_ms == primary.estimated_time_ms + joined.estimated_time_ms
        assert plan.validate()

    def test_risk_factors_and_success_criteria(self, coordinator):
        analysis = TaskAnalyzer().determine_coordination(
            Task(id="t", description="Real-time collaboration with analytics; depends on the api layer")
        )

        plan = coordinator.create_execution_plan(analysis)

        assert "External dependencies present" in plan.risk_factors
        assert plan.external_dependencies == ["the api layer"]
        assert len(plan.success_criteria) == 4


class TestExecution:
    """Plan execution semantics."""

    @pytest.mark.asyncio
    async def test_timeout_fails_only_the_slow_agent(self, task):
        manager = ConfigManager({
            "agents": {"analytics": {"timeout_ms": 10}},
            "orchestrator": {"retry_attempts": 0},
        })
        invoker = SimulatedAgentInvoker(latency_overrides={
            AgentDomain.ANALYTICS: 150,
            AgentDomain.CARD_SORT: 5,
        })
        coordinator = TaskCoordinator(manager, invoker=invoker)

        results = await coordinator.execute_task(
            make_plan([parallel_phase([AgentDomain.ANALYTICS, AgentDomain.CARD_SORT])]), task
        )

        by_domain = {result.domain: result for result in results}
        assert by_domain[AgentDomain.ANALYTICS].success is False
        assert by_domain[AgentDomain.ANALYTICS].errors[0].startswith("timeout:")
        assert by_domain[AgentDomain.ANALYTICS].confidence == 0
        assert by_domain[AgentDomain.CARD_SORT].success is True

        status = coordinator.get_status()
        assert status["timed_out_invocations"] == 1
        assert status["active_executions"] == 0

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self, task):
        manager = ConfigManager({"orchestrator": {"retry_attempts": 2}})
        invoker = SimulatedAgentInvoker(time_scale=0.001, failures={AgentDomain.CARD_SORT: 2})
        coordinator = TaskCoordinator(manager, invoker=invoker)

        results = await coordinator.execute_task(make_plan([sequential_phase([AgentDomain.CARD_SORT])]), task)

        assert results[0].success is True
        assert invoker.invocations[AgentDomain.CARD_SORT] == 3
        assert coordinator.get_status()["retried_invocations"] == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_record_failure(self, task):
        manager = ConfigManager({"orchestrator": {"retry_attempts": 1}})
        invoker = SimulatedAgentInvoker(time_scale=0.001, failures={AgentDomain.CARD_SORT: 5})
        coordinator = TaskCoordinator(manager, invoker=invoker)

        results = await coordinator.execute_task(make_plan([sequential_phase([AgentDomain.CARD_SORT])]), task)

        assert results[0].success is False
        assert results[0].errors[0].startswith("invocation failed:")
        assert invoker.invocations[AgentDomain.CARD_SORT] == 2

    @pytest.mark.asyncio
    async def test_sequential_phase_aborts_after_failure(self, task):
        invoker = TrackingInvoker(delay=0.001, fail={AgentDomain.CARD_SORT})
        coordinator = TaskCoordinator(ConfigManager(), invoker=invoker)
        phase = sequential_phase([AgentDomain.ANALYTICS, AgentDomain.CARD_SORT, AgentDomain.INTEGRATION])

        results = await coordinator.execute_task(make_plan([phase]), task)

        assert invoker.calls == [AgentDomain.ANALYTICS, AgentDomain.CARD_SORT]
        assert [result.success for result in results] == [True, False, False]
        assert results[2].domain == AgentDomain.INTEGRATION
        assert results[2].errors[0].startswith("aborted:")

    @pytest.mark.asyncio
    async def test_sequential_phases_run_in_order(self, task):
        invoker = TrackingInvoker(delay=0.001)
        coordinator = TaskCoordinator(ConfigManager(), invoker=invoker)
        plan = make_plan([
            sequential_phase([AgentDomain.PARTICIPANT], phase_id="sequential-1"),
            sequential_phase([AgentDomain.FRONTEND_UX], phase_id="sequential-2", dependencies=["sequential-1"]),
        ])

        results = await coordinator.execute_task(plan, task)

        assert invoker.calls == [AgentDomain.PARTICIPANT, AgentDomain.FRONTEND_UX]
        assert all(result.success for result in results)

    @pytest.mark.asyncio
    async def test_join_phase_skipped_when_dependency_fails(self, task):
        invoker = TrackingInvoker(delay=0.001, fail={AgentDomain.COLLABORATION})
        coordinator = TaskCoordinator(ConfigManager(), invoker=invoker)
        plan = make_plan([
            sequential_phase([AgentDomain.COLLABORATION], phase_id="primary-analysis"),
            ExecutionPhase(
                phase_id="collaborative-execution",
                name="Collaborative",
                agents=[AgentDomain.ANALYTICS, AgentDomain.FRONTEND_UX],
                coordination_pattern=CoordinationPattern.PARALLEL,
                dependencies=["primary-analysis"],
                requires_dependency_success=True,
            ),
        ])

        results = await coordinator.execute_task(plan, task)

        assert invoker.calls == [AgentDomain.COLLABORATION]
        assert len(results) == 3
        assert all(not result.success for result in results)
        assert results[1].errors[0].startswith("skipped: dependency phase primary-analysis failed")

    @pytest.mark.asyncio
    async def test_disabled_agent_not_invoked(self, task):
        manager = ConfigManager({"agents": {"integration": {"enabled": False}}})
        invoker = TrackingInvoker(delay=0.001)
        coordinator = TaskCoordinator(manager, invoker=invoker)

        results = await coordinator.execute_task(
            make_plan([parallel_phase([AgentDomain.INTEGRATION, AgentDomain.ANALYTICS])]), task
        )

        assert invoker.calls == [AgentDomain.ANALYTICS]
        assert results[0].success is False
        assert "disabled" in results[0].errors[0]
        assert results[1].success is True

    @pytest.mark.asyncio
    async def test_engine_wide_concurrency_bound(self, task):
        manager = ConfigManager({"orchestrator": {"max_concurrent_agents": 2}})
        invoker = TrackingInvoker(delay=0.02)
        coordinator = TaskCoordinator(manager, invoker=invoker)
        agents = [AgentDomain.CARD_SORT, AgentDomain.ANALYTICS, AgentDomain.PARTICIPANT, AgentDomain.FRONTEND_UX]

        results = await coordinator.execute_task(make_plan([parallel_phase(agents)]), task)

        assert all(result.success for result in results)
        assert invoker.peak == 2

    @pytest.mark.asyncio
    async def test_raised_limit_waits_for_in_flight_work(self, task):
        manager = ConfigManager({"orchestrator": {"max_concurrent_agents": 2}})
        invoker = TrackingInvoker(delay=0.05)
        coordinator = TaskCoordinator(manager, invoker=invoker)
        agents = [AgentDomain.CARD_SORT, AgentDomain.ANALYTICS, AgentDomain.PARTICIPANT, AgentDomain.FRONTEND_UX]

        first = asyncio.ensure_future(coordinator.execute_task(make_plan([parallel_phase(agents)]), task))
        await asyncio.sleep(0.01)
        manager.update_config({"orchestrator": {"max_concurrent_agents": 4}})
        await coordinator.execute_task(
            make_plan([parallel_phase([AgentDomain.INTEGRATION, AgentDomain.COLLABORATION])]), task
        )
        await first

        assert invoker.peak == 2

        invoker.peak = 0
        await coordinator.execute_task(make_plan([parallel_phase(agents)]), task)

        assert invoker.peak == 4

    @pytest.mark.asyncio
    async def test_per_agent_concurrency_bound_across_tasks(self):
        manager = ConfigManager({
            "agents": {"analytics": {"max_concurrency": 1}},
            "orchestrator": {"max_concurrent_agents": 10},
        })
        invoker = TrackingInvoker(delay=0.02)
        coordinator = TaskCoordinator(manager, invoker=invoker)
        tasks = [Task(id=f"t-{n}", description="Add dendrogram") for n in range(3)]

        await asyncio.gather(*(
            coordinator.execute_task(
                ExecutionPlan(task_id=t.id, phases=[parallel_phase([AgentDomain.ANALYTICS])], total_estimated_time_ms=0),
                t,
            )
            for t in tasks
        ))

        assert invoker.peak_by_domain[AgentDomain.ANALYTICS] == 1
        assert len(invoker.calls) == 3

    @pytest.mark.asyncio
    async def test_config_snapshot_isolated_from_later_updates(self, task):
        manager = ConfigManager()
        invoker = TrackingInvoker(delay=0.05)
        coordinator = TaskCoordinator(manager, invoker=invoker)
        snapshot = manager.get_config()

        running = asyncio.ensure_future(coordinator.execute_task(
            make_plan([parallel_phase([AgentDomain.ANALYTICS])]), task, config=snapshot
        ))
        await asyncio.sleep(0.01)
        manager.set_agent_enabled(AgentDomain.ANALYTICS, False)

        results = await running

        assert results[0].success is True

    @pytest.mark.asyncio
    async def test_invalid_plan_rejected(self, task):
        coordinator = TaskCoordinator(ConfigManager(), invoker=TrackingInvoker())
        plan = make_plan([sequential_phase([AgentDomain.CARD_SORT], dependencies=["missing-phase"])])

        with pytest.raises(ValueError):
            await coordinator.execute_task(plan, task)
