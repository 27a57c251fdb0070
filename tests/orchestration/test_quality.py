"""
Quality Assurance Tests.

Tests result validation:
- Universal checks and score aggregation
- Quality gate relevance and missing-result handling
- Domain-specific validators
- Pass/fail policy and recommendations
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from vuxsort_orchestrator import (
    AgentDomain,
    AgentResult,
    AgentResultMetadata,
    CoordinationPattern,
    QualityAssurance,
    QualityConfig,
    QualityGate,
    RiskLevel,
    TaskAnalysis,
    TaskComplexity,
)
from vuxsort_orchestrator.quality import (
    is_result_relevant_for_gate,
    validate_analytics,
    validate_collaboration,
    validate_integration,
)
from vuxsort_orchestrator.task_analyzer import analytics_gate, type_safety_gate


def make_analysis(gates=None, primary=AgentDomain.CARD_SORT):
    return TaskAnalysis(
        task_id="t-1",
        primary_agent=primary,
        secondary_agents=[],
        coordination_pattern=CoordinationPattern.SEQUENTIAL,
        complexity=TaskComplexity.SIMPLE,
        estimated_effort="1-2 hours",
        risk_level=RiskLevel.LOW,
        dependencies=[],
        quality_gates=[type_safety_gate()] if gates is None else gates,
    )


def ok(domain, confidence=0.9, elapsed=100.0, resources=(), output=None):
    return AgentResult(
        domain=domain,
        task_id="t-1",
        success=True,
        output=output if output is not None else {"summary": "done"},
        metadata=AgentResultMetadata(
            execution_time_ms=elapsed,
            confidence=confidence,
            resources_used=list(resources),
        ),
    )


@pytest.fixture
def qa():
    return QualityAssurance()


def check(report, check_id):
    return next(c for c in report.checks if c.check_id == check_id)


class TestValidateResults:
    """End-to-end validation reports."""

    def test_clean_result_passes(self, qa):
        report = qa.validate_results([ok(AgentDomain.CARD_SORT)], make_analysis())

        assert report.passed
        assert [c.check_id for c in report.checks] == [
            "agent-completion",
            "critical-errors",
            "agent-confidence",
            "card-sort-performance-threshold",
            "type-safety",
            "card-sort-algorithm-correctness",
        ]
        assert report.score == pytest.approx(590 / 6)
        assert report.recommendations == ["Quality standards met - no immediate actions required"]

    def test_failed_result_lowers_score(self, qa):
        failed = AgentResult.failure(AgentDomain.CARD_SORT, "t-1", "timeout: card-sort exceeded 10ms")

        report = qa.validate_results([failed], make_analysis())

        assert report.passed is False
        assert report.score == pytest.approx(150 / 6)
        assert len(report.failed_checks) == 5
        assert report.recommendations == [
            "Address 5 failed quality checks",
            "Review output from agents with low confidence: card-sort",
            "Fix errors in agents: card-sort",
        ]

    def test_empty_results_pass(self, qa):
        report = qa.validate_results([], make_analysis())

        assert report.passed
        assert report.score == 100
        assert report.checks == []
        assert report.recommendations == ["Quality standards met - no immediate actions required"]

    def test_score_is_mean_of_checks(self, qa):
        results = [ok(AgentDomain.CARD_SORT), ok(AgentDomain.FRONTEND_UX)]

        report = qa.validate_results(results, make_analysis())

        assert 0 <= report.score <= 100
        assert report.score == pytest.approx(sum(c.score for c in report.checks) / len(report.checks))

    def test_require_all_checks_to_pass(self, qa):
        # No responsive resources, so mobile-responsiveness fails at 60
        results = [ok(AgentDomain.FRONTEND_UX)]

        lenient = qa.validate_results(results, make_analysis())
        strict = qa.validate_results(results, make_analysis(), QualityConfig(require_all_checks_to_pass=True))

        assert lenient.passed is True
        assert strict.passed is False
        assert check(strict, "frontend-ux-mobile-responsiveness").score == 60

    def test_minimum_score_threshold(self, qa):
        results = [ok(AgentDomain.FRONTEND_UX)]

        report = qa.validate_results(results, make_analysis(), QualityConfig(minimum_quality_score=99))

        assert report.passed is False

    def test_switches_disable_check_families(self, qa):
        config = QualityConfig(enable_quality_gates=False, agent_specific_validation=False)

        report = qa.validate_results([ok(AgentDomain.CARD_SORT)], make_analysis(), config)

        assert len(report.checks) == 4
        assert all(not c.check_id.startswith("type-safety") for c in report.checks)

    def test_validator_exception_yields_error_report(self, qa):
        def broken(result, config):
            raise RuntimeError("validator exploded")

        qa.register_validator(AgentDomain.CARD_SORT, broken)

        report = qa.validate_results([ok(AgentDomain.CARD_SORT)], make_analysis())

        assert report.passed is False
        assert report.score == 0
        assert report.checks[0].check_id == "validation-error"
        assert "validator exploded" in report.checks[0].details


class TestUniversalChecks:
    """Checks applied to every result set."""

    def test_performance_threshold_from_config(self, qa):
        config = QualityConfig(timeout_thresholds={AgentDomain.COLLABORATION: 200})

        checks = qa.run_universal_checks([ok(AgentDomain.COLLABORATION, elapsed=500)], config)
        perf = next(c for c in checks if c.check_id == "collaboration-performance-threshold")

        assert perf.passed is False
        assert perf.score == 0

    def test_default_threshold(self, qa):
        checks = qa.run_universal_checks([ok(AgentDomain.ANALYTICS, elapsed=15000)], QualityConfig())
        perf = next(c for c in checks if c.check_id == "analytics-performance-threshold")

        assert perf.passed is False
        assert perf.score == pytest.approx(50)

    def test_partial_completion(self, qa):
        results = [ok(AgentDomain.CARD_SORT), AgentResult.failure(AgentDomain.ANALYTICS, "t-1", "boom")]

        completion = qa.run_universal_checks(results, QualityConfig())[0]

        assert completion.passed is False
        assert completion.score == 50
        assert completion.details == "1/2 agents completed successfully"


class TestQualityGates:
    """Gate relevance and evaluation."""

    def test_required_gate_without_relevant_results_fails(self, qa):
        checks = qa.run_quality_gate_checks([ok(AgentDomain.CARD_SORT)], [analytics_gate()])

        assert checks[0].passed is False
        assert checks[0].score == 0
        assert "No relevant results" in checks[0].details

    def test_optional_gate_without_relevant_results_passes(self, qa):
        gate = QualityGate(
            id="analytics-extra",
            name="Extra",
            criteria=[],
            required=False,
            validator=lambda result: True,
            domain=AgentDomain.ANALYTICS,
        )

        checks = qa.run_quality_gate_checks([ok(AgentDomain.CARD_SORT)], [gate])

        assert checks[0].passed is True
        assert checks[0].score == 100

    def test_raising_predicate_scores_zero(self, qa):
        def explode(result):
            raise KeyError("missing field")

        gate = QualityGate(id="type-safety", name="Types", criteria=[], required=True, validator=explode)

        checks = qa.run_quality_gate_checks([ok(AgentDomain.CARD_SORT)], [gate])

        assert checks[0].passed is False
        assert checks[0].score == 0

    def test_analytics_gate_requires_high_confidence(self, qa):
        results = [ok(AgentDomain.ANALYTICS, confidence=0.95), ok(AgentDomain.ANALYTICS, confidence=0.75)]

        gate_check = qa.run_quality_gate_checks(results, [analytics_gate()])[0]

        assert gate_check.passed is False
        assert gate_check.score == 50

    def test_relevance_rules(self):
        card_sort = ok(AgentDomain.CARD_SORT)

        assert is_result_relevant_for_gate(card_sort, type_safety_gate())
        assert not is_result_relevant_for_gate(card_sort, analytics_gate())
        assert is_result_relevant_for_gate(ok(AgentDomain.ANALYTICS), analytics_gate())

        named = QualityGate(id="card-sort-layout", name="Layout", criteria=[], required=True, validator=bool)
        universal = QualityGate(id="performance", name="Perf", criteria=[], required=True, validator=bool)
        prefixed = QualityGate(id="performance-budget", name="Budget", criteria=[], required=True, validator=bool)

        assert is_result_relevant_for_gate(card_sort, named)
        assert is_result_relevant_for_gate(card_sort, universal)
        assert not is_result_relevant_for_gate(card_sort, prefixed)


class TestDomainValidators:
    """Domain-specific checks."""

    def test_analytics_with_visualizations(self):
        result = ok(AgentDomain.ANALYTICS, resources=("d3.js", "statistical-libraries"))

        checks = validate_analytics(result, QualityConfig())

        assert [c.check_id for c in checks] == [
            "analytics-statistical-validity",
            "analytics-visualization-completeness",
        ]
        assert all(c.passed for c in checks)

    def test_analytics_without_output(self):
        result = AgentResult(AgentDomain.ANALYTICS, "t-1", True, output=None)

        stats, visuals = validate_analytics(result, QualityConfig())

        assert stats.passed is False and stats.score == 0
        assert visuals.passed is False and visuals.score == 50

    def test_collaboration_latency(self):
        config = QualityConfig(timeout_thresholds={AgentDomain.COLLABORATION: 200})

        slow = validate_collaboration(ok(AgentDomain.COLLABORATION, elapsed=500), config)[0]
        fast = validate_collaboration(ok(AgentDomain.COLLABORATION, elapsed=50), config)[0]

        assert slow.passed is False
        assert slow.score == pytest.approx(95)
        assert fast.passed is True

    def test_integration_confidence(self):
        check_result = validate_integration(ok(AgentDomain.INTEGRATION, confidence=0.5), QualityConfig())[0]

        assert check_result.passed is False
        assert check_result.score == pytest.approx(50)
