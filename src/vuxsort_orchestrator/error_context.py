"""
Error context with actionable hints.

Provides structured error messages with:
- Execution and task details
- Failing agent, if any
- Troubleshooting hints
- Recovery suggestions
"""

import sys
from dataclasses import dataclass
from typing import Dict, List, Optional

from .exceptions import OrchestrationError, TaskTimeoutError
from .models import Task


@dataclass
class ErrorContext:
    """Structured error context for debugging failed executions."""
    error_type: str
    error_message: str
    execution_id: Optional[str] = None
    task_id: Optional[str] = None
    task_summary: Optional[str] = None
    agent: Optional[str] = None
    elapsed_ms: Optional[float] = None
    troubleshooting_hints: Optional[List[str]] = None
    recovery_suggestions: Optional[List[str]] = None
    environment_info: Optional[Dict[str, str]] = None

    def format(self) -> str:
        """Format error context as a boxed, human-readable block."""
        rule = "═" * 62
        parts = [
            f"╔{rule}",
            f"║ {self.error_type}: {self.error_message}",
            f"╠{rule}",
        ]

        if self.execution_id or self.task_id:
            parts.append("║ Execution:")
            if self.execution_id:
                parts.append(f"║   ID: {self.execution_id}")
            if self.task_id:
                parts.append(f"║   Task: {self.task_id}")
            if self.task_summary:
                parts.append(f"║   Summary: {self.task_summary[:100]}")
            if self.elapsed_ms is not None:
                parts.append(f"║   Elapsed: {self.elapsed_ms:.0f}ms")

        if self.agent:
            parts.append("║ Agent:")
            parts.append(f"║   Domain: {self.agent}")

        if self.environment_info:
            parts.append("║ Environment:")
            for key, value in self.environment_info.items():
                parts.append(f"║   {key}: {value}")

        if self.troubleshooting_hints:
            parts.append(f"╠{rule}")
            parts.append("║ Troubleshooting:")
            for hint in self.troubleshooting_hints:
                parts.append(f"║   • {hint}")

        if self.recovery_suggestions:
            parts.append(f"╠{rule}")
            parts.append("║ Recovery:")
            for suggestion in self.recovery_suggestions:
                parts.append(f"║   → {suggestion}")

        parts.append(f"╚{rule}")
        return "\n".join(parts)

    def format_summary(self) -> str:
        """Concise single-line form for error-level log lines."""
        parts = [f"{self.error_type}: {self.error_message}"]
        if self.execution_id:
            parts.append(f"execution={self.execution_id}")
        if self.task_id:
            parts.append(f"task={self.task_id}")
        if self.agent:
            parts.append(f"agent={self.agent}")
        if self.troubleshooting_hints:
            parts.append(f"hint: {self.troubleshooting_hints[0]}")
        return " | ".join(parts)


def get_environment_info() -> Dict[str, str]:
    """Get environment information for diagnostics."""
    return {
        "Python": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "Platform": sys.platform,
    }


def create_pipeline_error_context(error: OrchestrationError, stage: Optional[str] = None) -> ErrorContext:
    """Create error context for a failed submit_task pipeline."""
    troubleshooting = []
    recovery = []

    cause = error.original_error
    cause_msg = str(cause) if cause is not None else ""

    if stage:
        troubleshooting.append(f"Pipeline failed during the {stage} stage")

    if isinstance(error, TaskTimeoutError):
        troubleshooting.append(f"Task-wide deadline of {error.timeout_ms:g}ms was exceeded")
        recovery.append("Raise orchestrator.timeout_ms or apply the 'development' profile")
        recovery.append("Lower per-agent timeouts so slow agents fail before the task deadline")
    elif cause is not None:
        troubleshooting.append(f"Underlying cause: {type(cause).__name__}: {cause_msg}")

    if "plan" in cause_msg.lower():
        recovery.append("Check the execution plan phases for invalid dependencies")

    if not recovery:
        recovery.append("Inspect the debug log for the failing stage and resubmit the task")

    task = error.task if isinstance(error.task, Task) else None
    return ErrorContext(
        error_type=type(error).__name__,
        error_message=str(error),
        execution_id=error.execution_id,
        task_id=task.id if task else None,
        task_summary=task.summary() if task else None,
        elapsed_ms=error.execution_time_ms,
        troubleshooting_hints=troubleshooting,
        recovery_suggestions=recovery,
        environment_info=get_environment_info(),
    )


def create_validation_error_context(
    task_id: Optional[str],
    validation_issues: List[str],
    what: str = "Task"
) -> ErrorContext:
    """Create error context for task or configuration validation failures."""
    troubleshooting = [
        f"{what} validation failed",
        f"Found {len(validation_issues)} issue(s)",
    ]

    return ErrorContext(
        error_type="ValidationError",
        error_message=f"{what} failed validation with {len(validation_issues)} issues",
        task_id=task_id,
        troubleshooting_hints=troubleshooting + validation_issues[:5],
        recovery_suggestions=[f"Fix: {issue}" for issue in validation_issues[:5]],
    )
