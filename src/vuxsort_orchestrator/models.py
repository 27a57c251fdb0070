"""
Core data model for task routing and agent coordination.

Tasks come in from callers, analyses and plans are derived once per task,
and agent results flow from the coordinator into quality assurance.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .capabilities import AgentDomain


class TaskType(Enum):
    FEATURE = "feature"
    BUG = "bug"
    OPTIMIZATION = "optimization"
    ANALYSIS = "analysis"


class TaskComplexity(Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class TaskUrgency(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CoordinationPattern(Enum):
    """How agents are combined for a task or phase."""
    SEQUENTIAL = "sequential"        # One agent after another
    PARALLEL = "parallel"            # Concurrent, independent
    COLLABORATIVE = "collaborative"  # Concurrent with shared joins


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class TaskMetadata:
    """Optional planning hints supplied with a task."""
    estimated_hours: Optional[float] = None
    dependencies: List[str] = field(default_factory=list)
    related_tasks: List[str] = field(default_factory=list)
    business_value: Optional[float] = None


@dataclass(frozen=True)
class Task:
    """
    A unit of work submitted by a caller.

    ``complexity`` is the caller's hint; analysis computes its own tier.
    """
    id: str
    description: str
    requirements: List[str] = field(default_factory=list)
    type: TaskType = TaskType.FEATURE
    complexity: TaskComplexity = TaskComplexity.MODERATE
    urgency: TaskUrgency = TaskUrgency.MEDIUM
    files: List[str] = field(default_factory=list)
    metadata: Optional[TaskMetadata] = None

    @property
    def business_value(self) -> float:
        if self.metadata and self.metadata.business_value is not None:
            return self.metadata.business_value
        return 0.0

    def summary(self) -> str:
        """One-line description for logs."""
        return (
            f"Task {self.id}: {self.description[:50]}... "
            f"[{self.type.value}/{self.complexity.value}/{self.urgency.value}]"
        )


@dataclass
class AgentResultMetadata:
    """Execution facts reported alongside an agent's output."""
    execution_time_ms: float = 0.0
    resources_used: List[str] = field(default_factory=list)
    confidence: float = 0.0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class AgentResult:
    """Outcome of one agent invocation for one task."""
    domain: AgentDomain
    task_id: str
    success: bool
    output: Any = None
    metadata: AgentResultMetadata = field(default_factory=AgentResultMetadata)
    timestamp: str = field(default_factory=utc_timestamp)

    @property
    def execution_time_ms(self) -> float:
        return self.metadata.execution_time_ms

    @property
    def confidence(self) -> float:
        return self.metadata.confidence

    @property
    def errors(self) -> List[str]:
        return self.metadata.errors

    @classmethod
    def failure(
        cls,
        domain: AgentDomain,
        task_id: str,
        error: str,
        execution_time_ms: float = 0.0
    ) -> "AgentResult":
        """Build a failed result carrying a single explanatory error."""
        return cls(
            domain=domain,
            task_id=task_id,
            success=False,
            output=None,
            metadata=AgentResultMetadata(
                execution_time_ms=execution_time_ms,
                confidence=0.0,
                errors=[error]
            )
        )


@dataclass(frozen=True)
class QualityGate:
    """
    Named pass/fail criterion evaluated against agent results.

    ``domain`` is None for universal gates.
    """
    id: str
    name: str
    criteria: List[str]
    required: bool
    validator: Callable[[AgentResult], bool]
    domain: Optional[AgentDomain] = None


@dataclass(frozen=True)
class TaskAnalysis:
    """Routing decision for one task; computed once, never mutated."""
    task_id: str
    primary_agent: AgentDomain
    secondary_agents: List[AgentDomain]
    coordination_pattern: CoordinationPattern
    complexity: TaskComplexity
    estimated_effort: str
    risk_level: RiskLevel
    dependencies: List[str]
    quality_gates: List[QualityGate]

    @property
    def agents(self) -> List[AgentDomain]:
        return [self.primary_agent, *self.secondary_agents]


@dataclass(frozen=True)
class ExecutionPhase:
    """
    One ordered group of agent work inside a plan.

    ``dependencies`` name phases that must finish first. When
    ``requires_dependency_success`` is set the phase is a join point and only
    runs if every agent of those phases succeeded.
    """
    phase_id: str
    name: str
    agents: List[AgentDomain]
    coordination_pattern: CoordinationPattern
    dependencies: List[str] = field(default_factory=list)
    estimated_time_ms: float = 0.0
    quality_gates: List[str] = field(default_factory=list)
    requires_dependency_success: bool = False


@dataclass(frozen=True)
class ExecutionPlan:
    """Ordered phases for one task."""
    task_id: str
    phases: List[ExecutionPhase]
    total_estimated_time_ms: float
    external_dependencies: List[str] = field(default_factory=list)
    risk_factors: List[str] = field(default_factory=list)
    success_criteria: List[str] = field(default_factory=list)

    @property
    def agents(self) -> List[AgentDomain]:
        seen: List[AgentDomain] = []
        for phase in self.phases:
            for agent in phase.agents:
                if agent not in seen:
                    seen.append(agent)
        return seen

    def validate(self) -> bool:
        """Check phase dependencies refer to earlier phases only."""
        known = set()
        for phase in self.phases:
            if any(dep not in known for dep in phase.dependencies):
                return False
            known.add(phase.phase_id)
        return True


@dataclass
class QualityCheckResult:
    check_id: str
    name: str
    passed: bool
    score: float
    details: str


@dataclass
class QualityReport:
    """Verdict of quality assurance over a task's agent results."""
    passed: bool
    score: float
    checks: List[QualityCheckResult] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def failed_checks(self) -> List[QualityCheckResult]:
        return [check for check in self.checks if not check.passed]


@dataclass
class ExecutionMetrics:
    """Per-execution summary attached to a task result."""
    execution_time_ms: float
    agents_used: List[AgentDomain]
    coordination_pattern: CoordinationPattern
    quality_score: float


@dataclass
class TaskExecutionResult:
    """Everything the engine returns to a caller for one submitted task."""
    execution_id: str
    task: Task
    analysis: TaskAnalysis
    plan: ExecutionPlan
    results: List[AgentResult]
    quality_report: QualityReport
    metrics: ExecutionMetrics
    orchestrator_metrics: Any
    success: bool
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """Compact, JSON-friendly summary."""
        return {
            "execution_id": self.execution_id,
            "task_id": self.task.id,
            "primary_agent": self.analysis.primary_agent.value,
            "secondary_agents": [a.value for a in self.analysis.secondary_agents],
            "coordination_pattern": self.analysis.coordination_pattern.value,
            "complexity": self.analysis.complexity.value,
            "risk_level": self.analysis.risk_level.value,
            "phases": [phase.phase_id for phase in self.plan.phases],
            "results": [
                {
                    "domain": r.domain.value,
                    "success": r.success,
                    "execution_time_ms": r.execution_time_ms,
                    "confidence": r.confidence,
                    "errors": list(r.errors),
                }
                for r in self.results
            ],
            "quality": {
                "passed": self.quality_report.passed,
                "score": self.quality_report.score,
                "recommendations": list(self.quality_report.recommendations),
            },
            "execution_time_ms": self.metrics.execution_time_ms,
            "success": self.success,
            "timestamp": self.timestamp,
        }
