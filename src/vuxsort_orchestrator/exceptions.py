"""Typed errors raised by the orchestration engine."""

from typing import Any, List, Optional


class OrchestratorBaseError(Exception):
    """Base exception for orchestration errors."""

    def __init__(self, message: str, retryable: bool = False, original_error: Optional[BaseException] = None):
        """
        Initialize orchestration error.

        Args:
            message: Error message
            retryable: Whether the failed operation may be retried
            original_error: Exception that caused this error
        """
        super().__init__(message)
        self.retryable = retryable
        self.original_error = original_error


class TaskValidationError(OrchestratorBaseError, ValueError):
    """Task is structurally invalid and was rejected before any agent work."""

    def __init__(self, task_id: str, issues: List[str]):
        message = f"Task {task_id or '<missing id>'} failed validation: {'; '.join(issues)}"
        super().__init__(message, retryable=False)
        self.task_id = task_id
        self.issues = list(issues)


class ConfigValidationError(OrchestratorBaseError, ValueError):
    """Configuration is invalid, or refers to an unknown profile or setting."""

    def __init__(self, message: str, issues: Optional[List[str]] = None):
        super().__init__(message, retryable=False)
        self.issues = list(issues or [])


class AgentInvocationError(OrchestratorBaseError):
    """An agent invocation raised or could not complete."""

    def __init__(self, domain: Any, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message, retryable=True, original_error=original_error)
        self.domain = domain


class AgentTimeoutError(AgentInvocationError):
    """An agent invocation exceeded its configured deadline."""

    def __init__(self, domain: Any, timeout_ms: float, original_error: Optional[BaseException] = None):
        name = getattr(domain, "value", domain)
        super().__init__(domain, f"timeout: {name} exceeded {timeout_ms:g}ms", original_error=original_error)
        self.timeout_ms = timeout_ms


class OrchestrationError(OrchestratorBaseError):
    """
    Pipeline-level failure.

    Raised when analysis, planning, execution or validation escapes with an
    exception. Carries the execution id, the submitted task and the elapsed
    time so callers can correlate the failure with logs and metrics.
    """

    def __init__(
        self,
        message: str,
        execution_id: str,
        task: Any,
        execution_time_ms: float,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(message, retryable=False, original_error=original_error)
        self.execution_id = execution_id
        self.task = task
        self.execution_time_ms = execution_time_ms


class TaskTimeoutError(OrchestrationError):
    """Task-wide deadline exceeded."""

    def __init__(
        self,
        execution_id: str,
        task: Any,
        execution_time_ms: float,
        timeout_ms: float,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(
            f"Task execution exceeded {timeout_ms:g}ms deadline",
            execution_id=execution_id,
            task=task,
            execution_time_ms=execution_time_ms,
            original_error=original_error
        )
        self.timeout_ms = timeout_ms
