"""
Task Routing and Agent Coordination Engine for VUXSort.

Routes incoming tasks to six specialist agent domains:
- Card sort: study configuration, sorting algorithms, participant flow
- Analytics: similarity matrices, dendrograms, statistics
- Collaboration: real-time sessions, observers, team workflows
- Participant: recruitment, screening, demographics
- Frontend/UX: components, accessibility, responsive design
- Integration: APIs, databases, external services

Features:
- Weighted trigger routing with complexity and risk assessment
- Sequential, parallel and collaborative execution plans
- Per-agent timeouts, retries and concurrency limits
- Multi-stage quality assurance with domain validators
- Runtime configuration with profiles and transactional import

Usage:
    from vuxsort_orchestrator import Task, create_engine

    engine = create_engine(profile="development")
    result = await engine.submit_task(Task(
        id="task-1",
        description="Create basic card sorting interface",
        requirements=["Drag and drop cards", "Create categories"],
    ))
    print(result.analysis.primary_agent, result.quality_report.score)
"""

from .engine import (
    OrchestrationEngine,
    HealthReport,
    AgentHealth,
    create_engine
)
from .capabilities import (
    AgentDomain,
    AgentCapability,
    CapabilityRegistry,
    DEFAULT_REGISTRY
)
from .models import (
    Task,
    TaskMetadata,
    TaskType,
    TaskComplexity,
    TaskUrgency,
    CoordinationPattern,
    RiskLevel,
    TaskAnalysis,
    QualityGate,
    AgentResult,
    AgentResultMetadata,
    ExecutionPhase,
    ExecutionPlan,
    QualityCheckResult,
    QualityReport,
    ExecutionMetrics,
    TaskExecutionResult
)
from .task_analyzer import TaskAnalyzer
from .config_manager import (
    AgentConfig,
    OrchestratorSettings,
    RoutingSettings,
    OrchestratorConfig,
    ConfigManager
)
from .coordinator import TaskCoordinator
from .invoker import (
    AgentInvoker,
    InvocationContext,
    SimulatedAgentInvoker
)
from .quality import (
    QualityAssurance,
    QualityConfig
)
from .metrics import (
    AgentStats,
    OrchestratorMetrics,
    HistoryEntry,
    MetricsRecorder
)
from .validation import ValidationResult, validate_task
from .task_factory import (
    create_sample_task,
    create_test_task,
    create_analytics_task,
    create_ui_task,
    create_collaboration_task
)
from .exceptions import (
    OrchestratorBaseError,
    TaskValidationError,
    ConfigValidationError,
    AgentInvocationError,
    AgentTimeoutError,
    OrchestrationError,
    TaskTimeoutError
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "OrchestrationEngine",
    "HealthReport",
    "AgentHealth",
    "create_engine",
    # Capabilities
    "AgentDomain",
    "AgentCapability",
    "CapabilityRegistry",
    "DEFAULT_REGISTRY",
    # Data model
    "Task",
    "TaskMetadata",
    "TaskType",
    "TaskComplexity",
    "TaskUrgency",
    "CoordinationPattern",
    "RiskLevel",
    "TaskAnalysis",
    "QualityGate",
    "AgentResult",
    "AgentResultMetadata",
    "ExecutionPhase",
    "ExecutionPlan",
    "QualityCheckResult",
    "QualityReport",
    "ExecutionMetrics",
    "TaskExecutionResult",
    # Components
    "TaskAnalyzer",
    "AgentConfig",
    "OrchestratorSettings",
    "RoutingSettings",
    "OrchestratorConfig",
    "ConfigManager",
    "TaskCoordinator",
    "AgentInvoker",
    "InvocationContext",
    "SimulatedAgentInvoker",
    "QualityAssurance",
    "QualityConfig",
    "AgentStats",
    "OrchestratorMetrics",
    "HistoryEntry",
    "MetricsRecorder",
    "ValidationResult",
    "validate_task",
    # Sample tasks
    "create_sample_task",
    "create_test_task",
    "create_analytics_task",
    "create_ui_task",
    "create_collaboration_task",
    # Errors
    "OrchestratorBaseError",
    "TaskValidationError",
    "ConfigValidationError",
    "AgentInvocationError",
    "AgentTimeoutError",
    "OrchestrationError",
    "TaskTimeoutError",
]
