"""
Task Factory Tests.

Tests sample task builders:
- Generated ids and planning metadata
- Domain builders route to their domain
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from vuxsort_orchestrator import (
    AgentDomain,
    TaskAnalyzer,
    TaskComplexity,
    TaskType,
    TaskUrgency,
    create_analytics_task,
    create_collaboration_task,
    create_sample_task,
    create_test_task,
    create_ui_task,
    validate_task,
)


@pytest.fixture
def analyzer():
    return TaskAnalyzer()


class TestSampleTask:
    """Base builder."""

    def test_defaults(self):
        task = create_sample_task("Create basic card sorting interface")

        assert task.id.startswith("task_")
        assert len(task.id.split("_")[2]) == 6
        assert task.type == TaskType.FEATURE
        assert task.urgency == TaskUrgency.MEDIUM
        assert task.complexity == TaskComplexity.MODERATE
        assert task.requirements == []
        assert task.metadata.estimated_hours == 8
        assert 1 <= task.metadata.business_value <= 10
        assert validate_task(task).valid

    @pytest.mark.parametrize("complexity,hours", [
        (TaskComplexity.SIMPLE, 2),
        (TaskComplexity.MODERATE, 8),
        (TaskComplexity.COMPLEX, 24),
    ])
    def test_estimated_hours_follow_complexity(self, complexity, hours):
        task = create_sample_task("Add dendrogram to results", complexity=complexity)

        assert task.metadata.estimated_hours == hours

    def test_ids_are_unique(self):
        ids = {create_sample_task("Add dendrogram to results").id for _ in range(20)}

        assert len(ids) == 20

    def test_test_task_is_simple(self):
        task = create_test_task("Create basic card sorting interface", ["Drag and drop cards"])

        assert task.complexity == TaskComplexity.SIMPLE
        assert task.metadata.estimated_hours == 2
        assert task.requirements == ["Drag and drop cards"]


class TestDomainBuilders:
    """Builders seed domain vocabulary."""

    def test_analytics_task(self, analyzer):
        task = create_analytics_task("Compare study rounds", ["Export results"])

        assert task.description == "Analytics: Compare study rounds"
        assert task.requirements == ["similarity matrix generation", "statistical analysis", "Export results"]
        assert task.complexity == TaskComplexity.MODERATE
        assert analyzer.detect_primary_domain(task) == AgentDomain.ANALYTICS

    def test_ui_task(self, analyzer):
        task = create_ui_task("Redesign the settings page")

        assert task.description == "UI/UX: Redesign the settings page"
        assert task.requirements == ["responsive design", "accessibility compliance"]
        assert task.complexity == TaskComplexity.MODERATE
        assert analyzer.detect_primary_domain(task) == AgentDomain.FRONTEND_UX

    def test_collaboration_task(self, analyzer):
        task = create_collaboration_task("Shared whiteboard for workshops")

        assert task.description == "Collaboration: Shared whiteboard for workshops"
        assert task.requirements == ["real-time functionality", "multi-user support"]
        assert task.complexity == TaskComplexity.COMPLEX
        assert task.metadata.estimated_hours == 24
        assert analyzer.detect_primary_domain(task) == AgentDomain.COLLABORATION

    def test_caller_requirements_not_mutated(self):
        extra = ["Export results"]

        create_analytics_task("Compare study rounds", extra)

        assert extra == ["Export results"]
