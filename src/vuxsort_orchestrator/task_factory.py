"""
Task Factory - builds sample tasks for demos and tests.

Each builder prefixes the description and seeds the requirements with the
vocabulary of one domain so the analyzer routes the task there.
"""

import random
import time
import uuid
from typing import List, Optional

from .models import Task, TaskComplexity, TaskMetadata, TaskType, TaskUrgency

ESTIMATED_HOURS = {
    TaskComplexity.SIMPLE: 2,
    TaskComplexity.MODERATE: 8,
    TaskComplexity.COMPLEX: 24,
}


def create_sample_task(
    description: str,
    requirements: Optional[List[str]] = None,
    complexity: TaskComplexity = TaskComplexity.MODERATE
) -> Task:
    """
    Create a feature task with a generated id and planning metadata.

    Args:
        description: Task description
        requirements: Requirement phrases (default: none)
        complexity: Caller's complexity hint

    Returns:
        Task with estimated hours derived from complexity and a random
        business value between 1 and 10
    """
    return Task(
        id=f"task_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}",
        description=description,
        requirements=list(requirements or []),
        type=TaskType.FEATURE,
        complexity=complexity,
        urgency=TaskUrgency.MEDIUM,
        metadata=TaskMetadata(
            estimated_hours=ESTIMATED_HOURS[complexity],
            business_value=random.randint(1, 10),
        ),
    )


def create_test_task(description: str, requirements: Optional[List[str]] = None) -> Task:
    return create_sample_task(description, requirements, TaskComplexity.SIMPLE)


def create_analytics_task(description: str, requirements: Optional[List[str]] = None) -> Task:
    """Moderate task seeded for the analytics agent."""
    return create_sample_task(
        f"Analytics: {description}",
        ["similarity matrix generation", "statistical analysis"] + list(requirements or []),
        TaskComplexity.MODERATE,
    )


def create_ui_task(description: str, requirements: Optional[List[str]] = None) -> Task:
    """Moderate task seeded for the frontend/UX agent."""
    return create_sample_task(
        f"UI/UX: {description}",
        ["responsive design", "accessibility compliance"] + list(requirements or []),
        TaskComplexity.MODERATE,
    )


def create_collaboration_task(description: str, requirements: Optional[List[str]] = None) -> Task:
    """Complex task seeded for the collaboration agent."""
    return create_sample_task(
        f"Collaboration: {description}",
        ["real-time functionality", "multi-user support"] + list(requirements or []),
        TaskComplexity.COMPLEX,
    )
