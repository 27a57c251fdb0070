"""
Input validation for submitted tasks.

Rejects structurally invalid tasks before any analysis or agent work so
the analyzer never produces a degenerate routing decision.
"""

from dataclasses import dataclass, field
from typing import List

from .models import Task, TaskComplexity, TaskType, TaskUrgency


@dataclass
class ValidationResult:
    """Result of a validation pass."""
    valid: bool
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def validate_task(task: Task) -> ValidationResult:
    """
    Validate Task fields for correctness and completeness.

    Checks:
    - Required fields present and non-empty (id, description)
    - Enum-typed fields carry enum members
    - Requirements and files are lists of strings
    - Metadata values in range

    Args:
        task: Task to validate

    Returns:
        ValidationResult with issues and warnings
    """
    issues = []
    warnings = []

    if not isinstance(task, Task):
        return ValidationResult(valid=False, issues=[f"Expected Task, got {type(task).__name__}"])

    if not isinstance(task.id, str):
        issues.append(f"Task.id must be a string (got {type(task.id).__name__})")
    elif not task.id.strip():
        issues.append("Task.id is required")
    elif len(task.id) > 256:
        issues.append(f"Task.id too long ({len(task.id)} chars, max 256)")

    if not isinstance(task.description, str) or not task.description.strip():
        issues.append("Task.description is required")
    elif len(task.description.split()) < 3:
        warnings.append(f"Task.description very short ({len(task.description.split())} words)")

    if not isinstance(task.type, TaskType):
        issues.append(f"Task.type must be a TaskType (got {task.type!r})")
    if not isinstance(task.complexity, TaskComplexity):
        issues.append(f"Task.complexity must be a TaskComplexity (got {task.complexity!r})")
    if not isinstance(task.urgency, TaskUrgency):
        issues.append(f"Task.urgency must be a TaskUrgency (got {task.urgency!r})")

    if not isinstance(task.requirements, (list, tuple)):
        issues.append("Task.requirements must be a list")
    elif any(not isinstance(req, str) for req in task.requirements):
        issues.append("Task.requirements must contain only strings")
    elif not task.requirements:
        warnings.append("Task has no requirements (routing relies on description only)")

    # None means "no files"
    if task.files is not None and not isinstance(task.files, (list, tuple)):
        issues.append("Task.files must be a list")

    if task.metadata is not None:
        if task.metadata.estimated_hours is not None and task.metadata.estimated_hours < 0:
            issues.append(f"Task.metadata.estimated_hours must be >= 0 (got {task.metadata.estimated_hours})")
        if task.metadata.business_value is not None and task.metadata.business_value < 0:
            warnings.append(f"Task.metadata.business_value is negative ({task.metadata.business_value})")

    return ValidationResult(
        valid=len(issues) == 0,
        issues=issues,
        warnings=warnings
    )
