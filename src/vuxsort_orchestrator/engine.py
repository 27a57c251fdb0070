"""
Orchestration Engine - top-level facade.

Sequences every submitted task through:
1. Validate: reject malformed tasks and configs before any agent work
2. Analyze: route to primary/secondary domains and pick a coordination pattern
3. Plan: expand the analysis into ordered execution phases
4. Execute: run the phases against the agent invoker
5. Assure: score the results against universal, gate and domain checks
6. Record: update metrics and history atomically

Also exposes configuration passthroughs and health/performance
introspection for dashboards.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .capabilities import DEFAULT_REGISTRY, AgentDomain, CapabilityRegistry
from .config_manager import ConfigManager, OrchestratorConfig, validate_config
from .coordinator import TaskCoordinator
from .error_context import create_pipeline_error_context, create_validation_error_context
from .exceptions import ConfigValidationError, OrchestrationError, TaskTimeoutError, TaskValidationError
from .invoker import AgentInvoker
from .logging_config import get_logger
from .metrics import AgentStats, HistoryEntry, MetricsRecorder, OrchestratorMetrics
from .models import ExecutionMetrics, ExecutionPlan, Task, TaskAnalysis, TaskExecutionResult, utc_timestamp
from .quality import QualityAssurance
from .task_analyzer import TaskAnalyzer
from .validation import ValidationResult, validate_task

logger = get_logger("engine")

DEGRADED_SUCCESS_RATE = 80.0


@dataclass
class AgentHealth:
    """Health of one agent domain."""
    status: str
    success_rate: float
    average_response_time_ms: float
    enabled: bool
    last_active: Optional[str] = None


@dataclass
class HealthReport:
    """Overall and per-agent health."""
    status: str
    agents: Dict[AgentDomain, AgentHealth]
    metrics: OrchestratorMetrics
    timestamp: str = field(default_factory=utc_timestamp)

    @property
    def degraded_agents(self) -> List[AgentDomain]:
        return [domain for domain, health in self.agents.items() if health.status == "degraded"]


class OrchestrationEngine:
    """
    Routing and coordination engine for specialist agents.

    Args:
        config: Initial config overrides (partial mapping or OrchestratorConfig)
        registry: Capability table to route against
        invoker: Agent layer (defaults to the simulated invoker)
    """

    def __init__(
        self,
        config: Union[OrchestratorConfig, Mapping[str, Any], None] = None,
        registry: CapabilityRegistry = DEFAULT_REGISTRY,
        invoker: Optional[AgentInvoker] = None
    ):
        self.registry = registry
        self.config_manager = ConfigManager(config)
        self.coordinator = TaskCoordinator(self.config_manager, registry=registry, invoker=invoker)
        self.quality_assurance = QualityAssurance(self.config_manager.get_quality_config())
        self.metrics = MetricsRecorder()

        logger.info(
            f"Orchestration engine initialized: {len(registry)} agents, "
            f"{len(self.config_manager.get_enabled_agents())} enabled"
        )

    def _analyzer(self, config: OrchestratorConfig) -> TaskAnalyzer:
        return TaskAnalyzer(self.registry, config.routing.complexity_thresholds)

    def _validate_task(self, task: Task) -> None:
        validation = validate_task(task)
        task_id = getattr(task, "id", None)

        if not validation.valid:
            context = create_validation_error_context(task_id, validation.issues)
            logger.error(context.format_summary())
            logger.debug(f"Error context:\n{context.format()}")
            raise TaskValidationError(task_id, validation.issues)

        for warning in validation.warnings:
            logger.warning(f"Task {task_id}: {warning}")

    def _snapshot_config(self) -> OrchestratorConfig:
        config = self.config_manager.get_config()
        validation = validate_config(config)
        if not validation.valid:
            context = create_validation_error_context(None, validation.issues, what="Configuration")
            logger.error(context.format_summary())
            raise ConfigValidationError(
                f"Configuration invalid: {'; '.join(validation.issues)}",
                validation.issues
            )
        return config

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def analyze_task(self, task: Task) -> TaskAnalysis:
        """Validate and analyze a task without executing it."""
        self._validate_task(task)
        return self._analyzer(self.config_manager.get_config()).determine_coordination(task)

    def create_plan(self, task: Task) -> ExecutionPlan:
        """Validate, analyze and plan a task without executing it."""
        config = self.config_manager.get_config()
        self._validate_task(task)
        analysis = self._analyzer(config).determine_coordination(task)
        return self.coordinator.create_execution_plan(analysis, config)

    async def submit_task(self, task: Task) -> TaskExecutionResult:
        """
        Run a task through the full pipeline.

        Args:
            task: Task to execute

        Returns:
            TaskExecutionResult with analysis, plan, results and quality report

        Raises:
            TaskValidationError: If the task is structurally invalid
            ConfigValidationError: If the current configuration is invalid
            TaskTimeoutError: If the task-wide deadline is exceeded
            OrchestrationError: If any pipeline stage fails
        """
        self._validate_task(task)
        config = self._snapshot_config()

        execution_id = f"exec_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        state: Dict[str, Any] = {"stage": "analyze", "analysis": None}
        timeout_ms = config.orchestrator.timeout_ms
        start = time.perf_counter()

        logger.info(f"[{execution_id}] Starting {task.summary()}")

        try:
            analysis, plan, results, report = await asyncio.wait_for(
                self._run_pipeline(task, config, execution_id, state),
                timeout=timeout_ms / 1000
            )

        except asyncio.TimeoutError as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            error = TaskTimeoutError(execution_id, task, elapsed_ms, timeout_ms, original_error=e)
            self._record_pipeline_failure(error, state)
            raise error from e

        except Exception as e:
            elapsed_ms = (time.perf_counter() - start) * 1000
            error = OrchestrationError(
                f"Task {task.id} failed during {state['stage']}: {e}",
                execution_id=execution_id,
                task=task,
                execution_time_ms=elapsed_ms,
                original_error=e
            )
            self._record_pipeline_failure(error, state)
            raise error from e

        elapsed_ms = (time.perf_counter() - start) * 1000
        success = report.passed and all(result.success for result in results)

        self.metrics.record_execution(HistoryEntry(
            execution_id=execution_id,
            task=task,
            analysis=analysis,
            plan=plan,
            results=results,
            quality_report=report,
            execution_time_ms=elapsed_ms,
            success=success,
        ))

        if success:
            logger.info(
                f"[{execution_id}] Completed {task.id} in {elapsed_ms:.0f}ms "
                f"(quality {report.score:.1f})"
            )
        else:
            failed = [result.domain.value for result in results if not result.success]
            logger.warning(
                f"[{execution_id}] {task.id} finished unsuccessfully in {elapsed_ms:.0f}ms "
                f"(quality {report.score:.1f}, passed={report.passed}, failed agents={failed})"
            )

        return TaskExecutionResult(
            execution_id=execution_id,
            task=task,
            analysis=analysis,
            plan=plan,
            results=results,
            quality_report=report,
            metrics=ExecutionMetrics(
                execution_time_ms=elapsed_ms,
                agents_used=plan.agents,
                coordination_pattern=analysis.coordination_pattern,
                quality_score=report.score,
            ),
            orchestrator_metrics=self.metrics.snapshot(),
            success=success,
        )

    async def _run_pipeline(self, task: Task, config: OrchestratorConfig, execution_id: str, state: Dict[str, Any]):
        state["stage"] = "analyze"
        analysis = self._analyzer(config).determine_coordination(task)
        state["analysis"] = analysis
        logger.info(
            f"[{execution_id}] Routed to {analysis.primary_agent.value} "
            f"+{[a.value for a in analysis.secondary_agents]} "
            f"({analysis.coordination_pattern.value}, {analysis.complexity.value}, risk {analysis.risk_level.value})"
        )

        state["stage"] = "plan"
        plan = self.coordinator.create_execution_plan(analysis, config)

        state["stage"] = "execute"
        results = await self.coordinator.execute_task(plan, task, config, execution_id)

        state["stage"] = "validate"
        report = self.quality_assurance.validate_results(
            results, analysis, self.config_manager.get_quality_config(config)
        )

        return analysis, plan, results, report

    def _record_pipeline_failure(self, error: OrchestrationError, state: Dict[str, Any]) -> None:
        analysis = state.get("analysis")
        pattern = analysis.coordination_pattern if analysis is not None else None
        self.metrics.record_failure(error.execution_time_ms, pattern)

        context = create_pipeline_error_context(error, stage=state.get("stage"))
        logger.error(context.format_summary())
        logger.debug(f"Error context:\n{context.format()}")

    async def submit_tasks(self, tasks: List[Task]) -> List[Union[TaskExecutionResult, BaseException]]:
        """Run independent tasks concurrently; failures are returned in place."""
        return list(await asyncio.gather(
            *(self.submit_task(task) for task in tasks),
            return_exceptions=True
        ))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_metrics(self) -> OrchestratorMetrics:
        return self.metrics.snapshot()

    def get_agent_performance(self) -> Dict[AgentDomain, AgentStats]:
        return self.metrics.agent_performance()

    def get_history(self, limit: Optional[int] = 10) -> List[HistoryEntry]:
        return self.metrics.history(limit)

    def check_health(self) -> HealthReport:
        """Per-agent health; an agent is degraded below 80% historical success."""
        config = self.config_manager.get_config()
        performance = self.metrics.agent_performance()
        agents: Dict[AgentDomain, AgentHealth] = {}

        for domain in self.registry.domains:
            stats = performance.get(domain)
            agent_config = config.agents.get(domain)
            if stats is None or stats.tasks_handled == 0:
                agents[domain] = AgentHealth(
                    status="healthy",
                    success_rate=100.0,
                    average_response_time_ms=0.0,
                    enabled=bool(agent_config and agent_config.enabled),
                )
                continue

            agents[domain] = AgentHealth(
                status="degraded" if stats.success_rate < DEGRADED_SUCCESS_RATE else "healthy",
                success_rate=stats.success_rate,
                average_response_time_ms=stats.average_execution_time_ms,
                enabled=bool(agent_config and agent_config.enabled),
                last_active=stats.last_active,
            )

        overall = "degraded" if any(h.status == "degraded" for h in agents.values()) else "healthy"
        if overall == "degraded":
            logger.warning(f"Health degraded: {[d.value for d, h in agents.items() if h.status == 'degraded']}")

        return HealthReport(status=overall, agents=agents, metrics=self.metrics.snapshot())

    def get_status(self) -> Dict[str, Any]:
        """Get current engine status."""
        config = self.config_manager.get_config()
        metrics = self.metrics.snapshot()
        return {
            "coordinator": self.coordinator.get_status(),
            "config": {
                "enabled_agents": [d.value for d in self.config_manager.get_enabled_agents()],
                "timeout_ms": config.orchestrator.timeout_ms,
                "retry_attempts": config.orchestrator.retry_attempts,
                "quality_gates": config.orchestrator.quality_gates,
            },
            "metrics": metrics.to_dict(),
            "history_size": len(self.metrics),
        }

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self) -> OrchestratorConfig:
        return self.config_manager.get_config()

    def update_config(self, update: Union[OrchestratorConfig, Mapping[str, Any]]) -> OrchestratorConfig:
        return self.config_manager.update_config(update)

    def reset_config(self) -> None:
        self.config_manager.reset_to_defaults()

    def apply_profile(self, profile: str) -> OrchestratorConfig:
        return self.config_manager.apply_profile(profile)

    def validate_config(self) -> ValidationResult:
        return self.config_manager.validate_config()

    def export_config(self) -> str:
        return self.config_manager.export_config()

    def import_config(self, serialized: str) -> ValidationResult:
        return self.config_manager.import_config(serialized)


def create_engine(
    config: Union[OrchestratorConfig, Mapping[str, Any], None] = None,
    profile: Optional[str] = None,
    invoker: Optional[AgentInvoker] = None
) -> OrchestrationEngine:
    """
    Create an orchestration engine with optional overrides and profile.

    Args:
        config: Partial config overrides
        profile: Named profile to apply ("development", "production", "testing")
        invoker: Agent layer

    Returns:
        Configured OrchestrationEngine instance
    """
    engine = OrchestrationEngine(config=config, invoker=invoker)
    if profile:
        engine.apply_profile(profile)
    return engine
