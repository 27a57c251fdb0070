"""
Performance metrics and execution history.

MetricsRecorder is the single owner of the running aggregates and the
history map. Every mutation happens under one lock, so concurrent task
completions never interleave partial updates.
"""

import copy
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .capabilities import AgentDomain
from .models import (
    AgentResult,
    CoordinationPattern,
    ExecutionPlan,
    QualityReport,
    Task,
    TaskAnalysis,
    utc_timestamp,
)


@dataclass
class AgentStats:
    """Aggregate metrics for one agent domain."""
    domain: AgentDomain
    tasks_handled: int = 0
    successful_tasks: int = 0
    failed_tasks: int = 0
    total_execution_time_ms: float = 0.0
    total_confidence: float = 0.0
    collaborative_tasks: int = 0
    last_active: Optional[str] = None

    def update(self, result: AgentResult, collaborative: bool):
        """Update aggregates with one agent result."""
        self.tasks_handled += 1
        if result.success:
            self.successful_tasks += 1
        else:
            self.failed_tasks += 1
        self.total_execution_time_ms += result.execution_time_ms
        self.total_confidence += result.confidence
        if collaborative:
            self.collaborative_tasks += 1
        self.last_active = result.timestamp

    @property
    def success_rate(self) -> float:
        """Success rate as percentage."""
        if self.tasks_handled == 0:
            return 0.0
        return self.successful_tasks / self.tasks_handled * 100.0

    @property
    def average_execution_time_ms(self) -> float:
        if self.tasks_handled == 0:
            return 0.0
        return self.total_execution_time_ms / self.tasks_handled

    @property
    def quality_score(self) -> float:
        """Average reported confidence."""
        if self.tasks_handled == 0:
            return 0.0
        return self.total_confidence / self.tasks_handled

    @property
    def collaboration_score(self) -> float:
        """Share of this domain's tasks that involved other agents."""
        if self.tasks_handled == 0:
            return 0.0
        return self.collaborative_tasks / self.tasks_handled

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain.value,
            "tasks_handled": self.tasks_handled,
            "successful_tasks": self.successful_tasks,
            "failed_tasks": self.failed_tasks,
            "success_rate": self.success_rate,
            "average_execution_time_ms": self.average_execution_time_ms,
            "quality_score": self.quality_score,
            "collaboration_score": self.collaboration_score,
            "last_active": self.last_active,
        }


@dataclass
class OrchestratorMetrics:
    """Running aggregates across every submitted task."""
    total_tasks: int = 0
    successful_tasks: int = 0
    failed_tasks: int = 0
    average_execution_time_ms: float = 0.0
    agent_performance: Dict[AgentDomain, AgentStats] = field(default_factory=dict)
    # Mean end-to-end latency per coordination pattern
    coordination_efficiency: Dict[CoordinationPattern, float] = field(default_factory=dict)
    pattern_counts: Dict[CoordinationPattern, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        if self.total_tasks == 0:
            return 0.0
        return self.successful_tasks / self.total_tasks * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_tasks": self.total_tasks,
            "successful_tasks": self.successful_tasks,
            "failed_tasks": self.failed_tasks,
            "success_rate": self.success_rate,
            "average_execution_time_ms": self.average_execution_time_ms,
            "agent_performance": {d.value: s.to_dict() for d, s in self.agent_performance.items()},
            "coordination_efficiency": {p.value: v for p, v in self.coordination_efficiency.items()},
        }


@dataclass
class HistoryEntry:
    """One completed execution, retained for history queries."""
    execution_id: str
    task: Task
    analysis: TaskAnalysis
    plan: ExecutionPlan
    results: List[AgentResult]
    quality_report: QualityReport
    execution_time_ms: float
    success: bool
    timestamp: str = field(default_factory=utc_timestamp)


class MetricsRecorder:
    """
    Thread-safe owner of orchestrator metrics and execution history.

    Readers get deep copies; history entries are never pruned.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._metrics = OrchestratorMetrics()
        self._history: Dict[str, HistoryEntry] = {}

    def _record_task(self, success: bool, execution_time_ms: float) -> None:
        # Caller holds the lock
        metrics = self._metrics
        metrics.total_tasks += 1
        if success:
            metrics.successful_tasks += 1
        else:
            metrics.failed_tasks += 1
        metrics.average_execution_time_ms += (
            (execution_time_ms - metrics.average_execution_time_ms) / metrics.total_tasks
        )

    def _record_pattern(self, pattern: CoordinationPattern, execution_time_ms: float) -> None:
        count = self._metrics.pattern_counts.get(pattern, 0) + 1
        previous = self._metrics.coordination_efficiency.get(pattern, 0.0)
        self._metrics.pattern_counts[pattern] = count
        self._metrics.coordination_efficiency[pattern] = previous + (execution_time_ms - previous) / count

    def record_execution(self, entry: HistoryEntry) -> None:
        """Record a completed execution: aggregates, per-agent stats and history."""
        collaborative = len(entry.results) > 1
        with self._lock:
            self._record_task(entry.success, entry.execution_time_ms)
            self._record_pattern(entry.analysis.coordination_pattern, entry.execution_time_ms)

            for result in entry.results:
                stats = self._metrics.agent_performance.get(result.domain)
                if stats is None:
                    stats = self._metrics.agent_performance[result.domain] = AgentStats(domain=result.domain)
                stats.update(result, collaborative)

            self._history[entry.execution_id] = entry

    def record_failure(
        self,
        execution_time_ms: float,
        pattern: Optional[CoordinationPattern] = None
    ) -> None:
        """Record a pipeline failure that produced no history entry."""
        with self._lock:
            self._record_task(False, execution_time_ms)
            if pattern is not None:
                self._record_pattern(pattern, execution_time_ms)

    def snapshot(self) -> OrchestratorMetrics:
        with self._lock:
            return copy.deepcopy(self._metrics)

    def agent_performance(self) -> Dict[AgentDomain, AgentStats]:
        with self._lock:
            return copy.deepcopy(self._metrics.agent_performance)

    def history(self, limit: Optional[int] = 10) -> List[HistoryEntry]:
        """Past executions, most business-valuable first (ties keep submission order)."""
        with self._lock:
            entries = list(self._history.values())
        entries.sort(key=lambda entry: entry.task.business_value, reverse=True)
        return entries if limit is None else entries[:max(0, limit)]

    def get_entry(self, execution_id: str) -> Optional[HistoryEntry]:
        with self._lock:
            return self._history.get(execution_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)

    def reset(self) -> None:
        """Clear all metrics and history (for testing)."""
        with self._lock:
            self._metrics = OrchestratorMetrics()
            self._history = {}
