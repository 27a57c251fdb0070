"""
Task Analyzer - routing and complexity assessment.

Classifies an incoming task into a primary domain and supporting domains,
scores its complexity, picks a coordination pattern and derives the quality
gates the results will be held to. Every operation is a pure function of the
capability registry and the task text.
"""

import re
from typing import Callable, Dict, List, Mapping, Optional

from .capabilities import DEFAULT_REGISTRY, AgentDomain, CapabilityRegistry
from .logging_config import get_logger
from .models import (
    AgentResult,
    CoordinationPattern,
    QualityGate,
    RiskLevel,
    Task,
    TaskAnalysis,
    TaskComplexity,
)

logger = get_logger("task_analyzer")

HIGH_PRIORITY_WEIGHT = 2
DEFAULT_WEIGHT = 1
BOOST_MULTIPLIER = 1.5

COMPLEXITY_KEYWORDS = (
    "algorithm",
    "optimization",
    "integration",
    "real-time",
    "analytics",
    "visualization",
    "machine learning",
    "ai",
    "clustering",
    "statistical",
    "multi-user",
    "concurrent",
    "scalability",
    "performance",
)

SEQUENTIAL_INDICATORS = (
    "then",
    "after",
    "before",
    "depends on",
    "requires completion",
    "sequential",
    "step by step",
    "in order",
)

DEPENDENCY_PATTERNS = (
    re.compile(r"depends on ([\w\s]+)"),
    re.compile(r"requires ([\w\s]+)"),
    re.compile(r"after ([\w\s]+)"),
    re.compile(r"needs ([\w\s]+) to be completed"),
)

DEFAULT_COMPLEXITY_THRESHOLDS = {"simple": 3, "moderate": 8}

# (pattern, complexity) -> (estimated effort, risk)
EFFORT_TABLE = {
    (CoordinationPattern.SEQUENTIAL, TaskComplexity.SIMPLE): ("1-2 hours", RiskLevel.LOW),
    (CoordinationPattern.SEQUENTIAL, TaskComplexity.MODERATE): ("4-8 hours", RiskLevel.MEDIUM),
    (CoordinationPattern.SEQUENTIAL, TaskComplexity.COMPLEX): ("1-3 days", RiskLevel.HIGH),
    (CoordinationPattern.PARALLEL, TaskComplexity.SIMPLE): ("1-2 days", RiskLevel.HIGH),
    (CoordinationPattern.PARALLEL, TaskComplexity.MODERATE): ("4-6 hours", RiskLevel.MEDIUM),
    (CoordinationPattern.PARALLEL, TaskComplexity.COMPLEX): ("1-2 days", RiskLevel.HIGH),
    (CoordinationPattern.COLLABORATIVE, TaskComplexity.SIMPLE): ("2-5 days", RiskLevel.HIGH),
    (CoordinationPattern.COLLABORATIVE, TaskComplexity.MODERATE): ("8-12 hours", RiskLevel.HIGH),
    (CoordinationPattern.COLLABORATIVE, TaskComplexity.COMPLEX): ("2-5 days", RiskLevel.HIGH),
}


def _no_errors(result: AgentResult) -> bool:
    return result.success and not result.metadata.errors


def type_safety_gate() -> QualityGate:
    return QualityGate(
        id="type-safety",
        name="Type/Contract Safety",
        criteria=["No type or contract errors", "Strict type checking passes"],
        required=True,
        validator=_no_errors,
    )


def analytics_gate() -> QualityGate:
    return QualityGate(
        id="analytics-validation",
        name="Analytics Data Validation",
        criteria=["Statistical calculations accurate", "Visualizations render correctly"],
        required=True,
        validator=lambda result: result.success and result.metadata.confidence > 0.8,
        domain=AgentDomain.ANALYTICS,
    )


def accessibility_gate() -> QualityGate:
    return QualityGate(
        id="frontend-ux-accessibility",
        name="Accessibility Compliance",
        criteria=["ARIA labels present", "Keyboard navigation works", "Color contrast meets WCAG"],
        required=True,
        validator=lambda result: result.success and not any(
            "accessibility" in error.lower() for error in result.metadata.errors
        ),
        domain=AgentDomain.FRONTEND_UX,
    )


def real_time_gate() -> QualityGate:
    return QualityGate(
        id="collaboration-real-time-performance",
        name="Real-time Performance",
        criteria=["WebSocket connections stable", "Latency under 100ms", "No memory leaks"],
        required=True,
        validator=lambda result: result.success and result.metadata.execution_time_ms < 100,
        domain=AgentDomain.COLLABORATION,
    )


# Domain-specific gates; domains without an entry only get universal gates
DOMAIN_GATE_FACTORIES: Dict[AgentDomain, Callable[[], QualityGate]] = {
    AgentDomain.ANALYTICS: analytics_gate,
    AgentDomain.FRONTEND_UX: accessibility_gate,
    AgentDomain.COLLABORATION: real_time_gate,
}


def task_content(task: Task) -> str:
    """Single lower-cased haystack of description and requirements."""
    return (task.description + " " + " ".join(task.requirements)).lower()


class TaskAnalyzer:
    """
    Routes tasks against a capability registry.

    Args:
        registry: Capability table to route against
        complexity_thresholds: Upper score bounds for "simple" and "moderate"
        gate_factories: Domain-specific quality gate factories
    """

    def __init__(
        self,
        registry: CapabilityRegistry = DEFAULT_REGISTRY,
        complexity_thresholds: Optional[Mapping[str, float]] = None,
        gate_factories: Optional[Mapping[AgentDomain, Callable[[], QualityGate]]] = None
    ):
        self.registry = registry
        thresholds = dict(DEFAULT_COMPLEXITY_THRESHOLDS)
        if complexity_thresholds:
            thresholds.update({k: v for k, v in complexity_thresholds.items() if k in thresholds})
        self.complexity_thresholds = thresholds
        self.gate_factories = dict(DOMAIN_GATE_FACTORIES if gate_factories is None else gate_factories)

    def _trigger_weight(self, trigger: str) -> int:
        return HIGH_PRIORITY_WEIGHT if self.registry.is_high_priority(trigger) else DEFAULT_WEIGHT

    def score_domains(self, task: Task) -> Dict[AgentDomain, float]:
        """Weighted trigger score per domain, including topic boosts."""
        content = task_content(task)
        scores: Dict[AgentDomain, float] = {}

        for capability in self.registry:
            score = float(sum(
                self._trigger_weight(trigger)
                for trigger in capability.triggers
                if trigger in content
            ))
            if any(term in content for term in capability.boost_terms):
                score *= BOOST_MULTIPLIER
            scores[capability.domain] = score

        return scores

    def detect_primary_domain(self, task: Task) -> AgentDomain:
        """Highest-scoring domain; ties go to the first declared domain."""
        best_domain = self.registry.default_domain
        best_score = 0.0

        for domain, score in self.score_domains(task).items():
            if score > best_score:
                best_domain, best_score = domain, score

        return best_domain

    def identify_all_domains(self, task: Task) -> List[AgentDomain]:
        """
        Every domain relevant to the task, in registry order.

        A domain is relevant with two or more distinct trigger matches, or a
        single match on a relevance trigger. Never returns an empty list.
        """
        content = task_content(task)
        relevant: List[AgentDomain] = []

        for capability in self.registry:
            matches = [trigger for trigger in capability.triggers if trigger in content]
            if len(matches) >= 2 or any(self.registry.is_relevance_trigger(t) for t in matches):
                relevant.append(capability.domain)

        if not relevant:
            relevant.append(self.detect_primary_domain(task))

        return relevant

    def complexity_score(self, task: Task) -> int:
        """Additive complexity score from files, requirements, length, keywords and domains."""
        score = 0

        file_count = len(task.files or [])
        if file_count > 10:
            score += 3
        elif file_count > 5:
            score += 2
        elif file_count > 2:
            score += 1

        requirement_count = len(task.requirements)
        if requirement_count > 8:
            score += 3
        elif requirement_count > 4:
            score += 2
        elif requirement_count > 2:
            score += 1

        # Single-space split: runs of spaces count as empty words
        word_count = len(task.description.split(" "))
        if word_count > 100:
            score += 2
        elif word_count > 50:
            score += 1

        description = task.description.lower()
        score += sum(1 for keyword in COMPLEXITY_KEYWORDS if keyword in description)

        domain_count = len(self.identify_all_domains(task))
        if domain_count > 3:
            score += 3
        elif domain_count > 2:
            score += 2
        elif domain_count > 1:
            score += 1

        return score

    def assess_complexity(self, task: Task) -> TaskComplexity:
        score = self.complexity_score(task)
        if score <= self.complexity_thresholds["simple"]:
            return TaskComplexity.SIMPLE
        if score <= self.complexity_thresholds["moderate"]:
            return TaskComplexity.MODERATE
        return TaskComplexity.COMPLEX

    def is_parallelizable(self, task: Task) -> bool:
        """True when several domains can all pair up and nothing forces ordering."""
        domains = self.identify_all_domains(task)
        if len(domains) <= 1:
            return False

        for i, first in enumerate(domains):
            for second in domains[i + 1:]:
                if not self.registry.can_collaborate(first, second):
                    return False

        description = task.description.lower()
        return not any(indicator in description for indicator in SEQUENTIAL_INDICATORS)

    def extract_dependencies(self, task: Task) -> List[str]:
        """Dependency phrases named in the description, in pattern order."""
        content = task.description.lower()
        dependencies = []
        for pattern in DEPENDENCY_PATTERNS:
            for match in pattern.finditer(content):
                dependencies.append(match.group(1).strip())
        return dependencies

    def generate_quality_gates(self, domains: List[AgentDomain]) -> List[QualityGate]:
        """Universal gate first, then one gate per participating gated domain."""
        gates = [type_safety_gate()]
        for domain in self.registry.domains:
            factory = self.gate_factories.get(domain)
            if factory is not None and domain in domains:
                gates.append(factory())
        return gates

    def determine_coordination(self, task: Task) -> TaskAnalysis:
        """Full routing decision for a task."""
        complexity = self.assess_complexity(task)
        domains = self.identify_all_domains(task)
        primary = self.detect_primary_domain(task)
        secondary = [domain for domain in domains if domain != primary]

        if len(domains) == 1:
            pattern = CoordinationPattern.SEQUENTIAL
        elif self.is_parallelizable(task) and complexity != TaskComplexity.COMPLEX:
            pattern = CoordinationPattern.PARALLEL
        else:
            pattern = CoordinationPattern.COLLABORATIVE

        effort, risk = EFFORT_TABLE[(pattern, complexity)]

        analysis = TaskAnalysis(
            task_id=task.id,
            primary_agent=primary,
            secondary_agents=secondary,
            coordination_pattern=pattern,
            complexity=complexity,
            estimated_effort=effort,
            risk_level=risk,
            dependencies=self.extract_dependencies(task),
            quality_gates=self.generate_quality_gates(domains),
        )

        logger.debug(
            f"Analyzed {task.id}: primary={primary.value} "
            f"secondary={[d.value for d in secondary]} pattern={pattern.value} "
            f"complexity={complexity.value} risk={risk.value}"
        )
        return analysis


_default_analyzer = TaskAnalyzer()


def detect_primary_domain(task: Task) -> AgentDomain:
    return _default_analyzer.detect_primary_domain(task)


def identify_all_domains(task: Task) -> List[AgentDomain]:
    return _default_analyzer.identify_all_domains(task)


def assess_complexity(task: Task) -> TaskComplexity:
    return _default_analyzer.assess_complexity(task)


def is_parallelizable(task: Task) -> bool:
    return _default_analyzer.is_parallelizable(task)


def determine_coordination(task: Task) -> TaskAnalysis:
    return _default_analyzer.determine_coordination(task)
