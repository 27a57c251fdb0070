"""
Quality Assurance - validation of agent results.

Three families of checks run over a task's results:
1. Universal checks (completion, critical errors, confidence, performance)
2. Quality gates generated by the analyzer for this task
3. Domain-specific checks from a domain -> validator table

The overall score is the unweighted mean of every check's score. Gate and
check failures are never raised; they lower the score and show up in the
recommendations.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from .capabilities import AgentDomain
from .logging_config import get_logger
from .models import AgentResult, QualityCheckResult, QualityGate, QualityReport, TaskAnalysis

logger = get_logger("quality")

UNIVERSAL_GATE_IDS = frozenset({"type-safety", "performance", "error-handling"})

CONFIDENCE_THRESHOLD = 0.7
SLOW_AGENT_THRESHOLD_MS = 5000
DEFAULT_TIMEOUT_THRESHOLD_MS = 10000


@dataclass
class QualityConfig:
    """Quality assurance settings."""
    enable_quality_gates: bool = True
    minimum_quality_score: float = 70.0
    require_all_checks_to_pass: bool = False
    agent_specific_validation: bool = True
    timeout_thresholds: Dict[AgentDomain, float] = field(default_factory=dict)

    def threshold_for(self, domain: AgentDomain) -> float:
        return self.timeout_thresholds.get(domain) or DEFAULT_TIMEOUT_THRESHOLD_MS


DomainValidator = Callable[[AgentResult, QualityConfig], List[QualityCheckResult]]


def _check(result: AgentResult, suffix: str, name: str, passed: bool, score: float, details: str) -> QualityCheckResult:
    return QualityCheckResult(
        check_id=f"{result.domain.value}-{suffix}",
        name=name,
        passed=passed,
        score=score,
        details=details,
    )


def validate_analytics(result: AgentResult, config: QualityConfig) -> List[QualityCheckResult]:
    has_stats = isinstance(result.output, dict) and bool(result.output)
    has_visualizations = any(
        "visualization" in resource or "d3.js" in resource
        for resource in result.metadata.resources_used
    )
    return [
        _check(
            result, "statistical-validity", "Statistical Validity",
            has_stats, 100 if has_stats else 0,
            "Statistical output is valid" if has_stats else "No valid statistical output found"
        ),
        _check(
            result, "visualization-completeness", "Visualization Completeness",
            has_visualizations, 100 if has_visualizations else 50,
            "Visualizations generated" if has_visualizations else "No visualizations detected"
        ),
    ]


def validate_frontend_ux(result: AgentResult, config: QualityConfig) -> List[QualityCheckResult]:
    accessible = not any("accessibility" in error.lower() for error in result.metadata.errors)
    responsive = any(
        "responsive" in resource or "mobile" in resource
        for resource in result.metadata.resources_used
    )
    return [
        _check(
            result, "accessibility-compliance", "Accessibility Compliance",
            accessible, 100 if accessible else 30,
            "No accessibility issues found" if accessible else "Accessibility issues detected"
        ),
        _check(
            result, "mobile-responsiveness", "Mobile Responsiveness",
            responsive, 100 if responsive else 60,
            "Mobile support implemented" if responsive else "No mobile optimization detected"
        ),
    ]


def validate_collaboration(result: AgentResult, config: QualityConfig) -> List[QualityCheckResult]:
    threshold = config.threshold_for(AgentDomain.COLLABORATION)
    elapsed = result.execution_time_ms
    fast = elapsed < threshold
    return [
        _check(
            result, "real-time-performance", "Real-time Performance",
            fast, 100 if fast else max(0.0, 100 - elapsed / 100),
            f"Execution time: {elapsed:.0f}ms (threshold: {threshold:g}ms)"
        ),
    ]


def validate_participant(result: AgentResult, config: QualityConfig) -> List[QualityCheckResult]:
    clean = not any(
        "validation" in error.lower() or "format" in error.lower()
        for error in result.metadata.errors
    )
    return [
        _check(
            result, "data-validation", "Data Validation",
            clean, 100 if clean else 40,
            "All data validation passed" if clean else "Data validation errors found"
        ),
    ]


def validate_integration(result: AgentResult, config: QualityConfig) -> List[QualityCheckResult]:
    consistent = result.success and result.confidence > 0.8
    return [
        _check(
            result, "api-consistency", "API Consistency",
            consistent, 100 if consistent else result.confidence * 100,
            f"API consistency confidence: {result.confidence * 100:.1f}%"
        ),
    ]


def validate_card_sort(result: AgentResult, config: QualityConfig) -> List[QualityCheckResult]:
    correct = result.success and not result.metadata.errors
    return [
        _check(
            result, "algorithm-correctness", "Algorithm Correctness",
            correct, 100 if correct else 50,
            "Algorithm executed correctly" if correct else "Algorithm execution issues detected"
        ),
    ]


DOMAIN_VALIDATORS: Dict[AgentDomain, DomainValidator] = {
    AgentDomain.ANALYTICS: validate_analytics,
    AgentDomain.FRONTEND_UX: validate_frontend_ux,
    AgentDomain.COLLABORATION: validate_collaboration,
    AgentDomain.PARTICIPANT: validate_participant,
    AgentDomain.INTEGRATION: validate_integration,
    AgentDomain.CARD_SORT: validate_card_sort,
}


def is_result_relevant_for_gate(result: AgentResult, gate: QualityGate) -> bool:
    if gate.domain is not None and gate.domain == result.domain:
        return True
    if result.domain.value in gate.id:
        return True
    return gate.id in UNIVERSAL_GATE_IDS


class QualityAssurance:
    """
    Scores agent results and decides pass/fail.

    Args:
        config: Thresholds and switches
        validators: Domain validator table (defaults to DOMAIN_VALIDATORS)
    """

    def __init__(
        self,
        config: Optional[QualityConfig] = None,
        validators: Optional[Mapping[AgentDomain, DomainValidator]] = None
    ):
        self.config = config or QualityConfig()
        self.validators: Dict[AgentDomain, DomainValidator] = dict(
            DOMAIN_VALIDATORS if validators is None else validators
        )

    def register_validator(self, domain: AgentDomain, validator: DomainValidator) -> None:
        """Add or replace the domain-specific validator for a domain."""
        self.validators[domain] = validator

    def validate_results(
        self,
        results: List[AgentResult],
        analysis: TaskAnalysis,
        config: Optional[QualityConfig] = None
    ) -> QualityReport:
        """
        Run all check families over a task's results.

        Args:
            results: One result per invoked agent
            analysis: Analysis carrying the task's quality gates
            config: Per-call override of the QA settings

        Returns:
            QualityReport with score in [0, 100]
        """
        config = config or self.config

        if not results:
            return QualityReport(
                passed=True,
                score=100.0,
                checks=[],
                recommendations=self.generate_recommendations([], []),
            )

        try:
            checks = self.run_universal_checks(results, config)

            if config.enable_quality_gates:
                checks.extend(self.run_quality_gate_checks(results, analysis.quality_gates))

            if config.agent_specific_validation:
                checks.extend(self.run_domain_checks(results, config))

            score = self.calculate_overall_score(checks)
            if config.require_all_checks_to_pass:
                passed = all(check.passed for check in checks)
            else:
                passed = score >= config.minimum_quality_score

            passed_count = sum(1 for check in checks if check.passed)
            logger.info(
                f"Quality check for {analysis.task_id}: {passed_count}/{len(checks)} "
                f"checks passed ({score:.2f}% score)"
            )

            return QualityReport(
                passed=passed,
                score=score,
                checks=checks,
                recommendations=self.generate_recommendations(checks, results),
            )

        except Exception as e:
            logger.error(f"Quality validation failed for {analysis.task_id}: {e}")
            return QualityReport(
                passed=False,
                score=0.0,
                checks=[QualityCheckResult(
                    check_id="validation-error",
                    name="Quality Validation Error",
                    passed=False,
                    score=0.0,
                    details=f"Quality validation failed: {e}",
                )],
                recommendations=["Fix quality validation system errors before retrying"],
            )

    def run_universal_checks(self, results: List[AgentResult], config: QualityConfig) -> List[QualityCheckResult]:
        checks = []
        total = len(results)

        succeeded = sum(1 for result in results if result.success)
        all_succeeded = succeeded == total
        checks.append(QualityCheckResult(
            check_id="agent-completion",
            name="Agent Completion Check",
            passed=all_succeeded,
            score=succeeded / total * 100,
            details=(
                "All agents completed successfully" if all_succeeded
                else f"{succeeded}/{total} agents completed successfully"
            ),
        ))

        errors = [error for result in results for error in result.metadata.errors]
        checks.append(QualityCheckResult(
            check_id="critical-errors",
            name="Critical Error Check",
            passed=not errors,
            score=0.0 if errors else 100.0,
            details=(
                f"Found {len(errors)} critical errors: {', '.join(errors)}" if errors
                else "No critical errors found"
            ),
        ))

        avg_confidence = sum(result.confidence for result in results) / total
        checks.append(QualityCheckResult(
            check_id="agent-confidence",
            name="Agent Confidence Check",
            passed=avg_confidence >= CONFIDENCE_THRESHOLD,
            score=min(100.0, max(0.0, avg_confidence * 100)),
            details=(
                f"Average agent confidence: {avg_confidence * 100:.1f}% "
                f"(threshold: {CONFIDENCE_THRESHOLD * 100:.0f}%)"
            ),
        ))

        for result in results:
            threshold = config.threshold_for(result.domain)
            elapsed = result.execution_time_ms
            within = elapsed <= threshold
            checks.append(QualityCheckResult(
                check_id=f"{result.domain.value}-performance-threshold",
                name=f"{result.domain.value} Performance Threshold",
                passed=within,
                score=100.0 if within else max(0.0, 100 - (elapsed - threshold) / threshold * 100),
                details=f"Execution time: {elapsed:.0f}ms (threshold: {threshold:g}ms)",
            ))

        return checks

    def run_quality_gate_checks(self, results: List[AgentResult], gates: List[QualityGate]) -> List[QualityCheckResult]:
        checks = []

        for gate in gates:
            relevant = [result for result in results if is_result_relevant_for_gate(result, gate)]

            if not relevant:
                checks.append(QualityCheckResult(
                    check_id=gate.id,
                    name=gate.name,
                    passed=not gate.required,
                    score=0.0 if gate.required else 100.0,
                    details="No relevant results found for this quality gate",
                ))
                continue

            try:
                passed_count = sum(1 for result in relevant if gate.validator(result))
            except Exception as e:
                logger.warning(f"Quality gate {gate.id} validator raised: {e}")
                checks.append(QualityCheckResult(
                    check_id=gate.id,
                    name=gate.name,
                    passed=False,
                    score=0.0,
                    details=f"Quality gate validation failed: {e}",
                ))
                continue

            passed = passed_count == len(relevant) if gate.required else passed_count > 0
            checks.append(QualityCheckResult(
                check_id=gate.id,
                name=gate.name,
                passed=passed,
                score=passed_count / len(relevant) * 100,
                details=(
                    f"{passed_count}/{len(relevant)} results passed quality gate criteria: "
                    f"{', '.join(gate.criteria)}"
                ),
            ))

        return checks

    def run_domain_checks(self, results: List[AgentResult], config: QualityConfig) -> List[QualityCheckResult]:
        checks = []
        for result in results:
            validator = self.validators.get(result.domain)
            if validator is not None:
                checks.extend(validator(result, config))
        return checks

    @staticmethod
    def calculate_overall_score(checks: List[QualityCheckResult]) -> float:
        if not checks:
            return 100.0
        return sum(check.score for check in checks) / len(checks)

    @staticmethod
    def generate_recommendations(checks: List[QualityCheckResult], results: List[AgentResult]) -> List[str]:
        recommendations = []

        failed = [check for check in checks if not check.passed]
        if failed:
            recommendations.append(f"Address {len(failed)} failed quality checks")

        low_confidence = [r.domain.value for r in results if r.confidence < CONFIDENCE_THRESHOLD]
        if low_confidence:
            recommendations.append(f"Review output from agents with low confidence: {', '.join(low_confidence)}")

        slow = [r.domain.value for r in results if r.execution_time_ms > SLOW_AGENT_THRESHOLD_MS]
        if slow:
            recommendations.append(f"Optimize performance for slow agents: {', '.join(slow)}")

        with_errors = [r.domain.value for r in results if r.metadata.errors]
        if with_errors:
            recommendations.append(f"Fix errors in agents: {', '.join(with_errors)}")

        if not recommendations:
            recommendations.append("Quality standards met - no immediate actions required")

        return recommendations
