"""
Agent Capability Registry.

Static description of every specialist agent: its skills, the trigger
vocabulary used for routing, the domains it can work alongside and how many
invocations it accepts at once. The registry is built once and handed to the
analyzer and coordinator, so new agents are added here without touching
routing logic.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple


class AgentDomain(Enum):
    """Specialist identities, in declaration (tie-break) order."""
    CARD_SORT = "card-sort"
    ANALYTICS = "analytics"
    COLLABORATION = "collaboration"
    PARTICIPANT = "participant"
    FRONTEND_UX = "frontend-ux"
    INTEGRATION = "integration"


@dataclass(frozen=True)
class AgentCapability:
    """
    Expertise and routing vocabulary of one agent domain.

    Triggers are lower-cased phrases matched as substrings of the task text.
    ``boost_terms`` are canonical topic words whose presence multiplies the
    domain's routing score by 1.5.
    """
    domain: AgentDomain
    primary_skills: Tuple[str, ...]
    secondary_skills: Tuple[str, ...]
    triggers: Tuple[str, ...]
    collaborates_with: FrozenSet[AgentDomain] = frozenset()
    max_concurrency: int = 1
    boost_terms: Tuple[str, ...] = ()
    resources: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.max_concurrency < 1:
            raise ValueError(f"{self.domain.value}: max_concurrency must be >= 1")
        # Normalise so matching never depends on caller casing
        object.__setattr__(self, "triggers", tuple(t.lower() for t in self.triggers))
        object.__setattr__(self, "boost_terms", tuple(t.lower() for t in self.boost_terms))
        object.__setattr__(self, "collaborates_with", frozenset(self.collaborates_with))


DEFAULT_HIGH_PRIORITY_TRIGGERS: FrozenSet[str] = frozenset({
    "analytics",
    "real-time",
    "collaboration",
    "accessibility",
    "integration",
    "similarity matrix",
    "dendrogram",
    "drag and drop",
})

# Narrower set for relevance: one match on these makes a domain relevant.
# Scoring weights still use the wider set above.
DEFAULT_RELEVANCE_TRIGGERS: FrozenSet[str] = frozenset({
    "analytics",
    "real-time",
    "collaboration",
    "accessibility",
    "integration",
})


class CapabilityRegistry:
    """
    Immutable capability table keyed by domain.

    Iteration order is declaration order; the first declared domain is the
    default returned when routing cannot separate candidates.
    """

    def __init__(
        self,
        capabilities: Iterable[AgentCapability],
        high_priority_triggers: Iterable[str] = DEFAULT_HIGH_PRIORITY_TRIGGERS,
        relevance_triggers: Iterable[str] = DEFAULT_RELEVANCE_TRIGGERS
    ):
        table: Dict[AgentDomain, AgentCapability] = {}
        for capability in capabilities:
            if capability.domain in table:
                raise ValueError(f"Duplicate capability for {capability.domain.value}")
            table[capability.domain] = capability

        if not table:
            raise ValueError("Capability registry requires at least one agent")

        self._capabilities: Mapping[AgentDomain, AgentCapability] = MappingProxyType(table)
        self._high_priority: FrozenSet[str] = frozenset(t.lower() for t in high_priority_triggers)
        self._relevance: FrozenSet[str] = frozenset(t.lower() for t in relevance_triggers)

    @property
    def domains(self) -> List[AgentDomain]:
        return list(self._capabilities)

    @property
    def default_domain(self) -> AgentDomain:
        return next(iter(self._capabilities))

    @property
    def high_priority_triggers(self) -> FrozenSet[str]:
        return self._high_priority

    def __contains__(self, domain: AgentDomain) -> bool:
        return domain in self._capabilities

    def __iter__(self):
        return iter(self._capabilities.values())

    def __len__(self) -> int:
        return len(self._capabilities)

    def get(self, domain: AgentDomain) -> Optional[AgentCapability]:
        return self._capabilities.get(domain)

    def triggers(self, domain: AgentDomain) -> Tuple[str, ...]:
        capability = self._capabilities.get(domain)
        return capability.triggers if capability else ()

    def collaborators(self, domain: AgentDomain) -> FrozenSet[AgentDomain]:
        capability = self._capabilities.get(domain)
        return capability.collaborates_with if capability else frozenset()

    def can_collaborate(self, first: AgentDomain, second: AgentDomain) -> bool:
        """Collaboration is symmetric: an edge declared on either side counts."""
        return second in self.collaborators(first) or first in self.collaborators(second)

    def max_concurrency(self, domain: AgentDomain) -> int:
        capability = self._capabilities.get(domain)
        return capability.max_concurrency if capability else 1

    def is_high_priority(self, trigger: str) -> bool:
        return trigger.lower() in self._high_priority

    def is_relevance_trigger(self, trigger: str) -> bool:
        return trigger.lower() in self._relevance


DEFAULT_CAPABILITIES: Tuple[AgentCapability, ...] = (
    AgentCapability(
        domain=AgentDomain.CARD_SORT,
        primary_skills=(
            "sort-algorithm-optimization",
            "study-configuration",
            "category-management",
            "participant-flow-coordination",
            "multi-round-studies",
            "sequential-staged-sorting",
        ),
        secondary_skills=(
            "basic-analytics",
            "participant-interface",
            "data-validation",
            "study-templates",
        ),
        triggers=(
            "card sort",
            "open card sort",
            "closed card sort",
            "hybrid sort",
            "sort algorithm",
            "drag and drop",
            "categories",
            "category management",
            "study configuration",
            "participant flow",
            "multi-round",
            "sequential sorting",
            "staged sorting",
            "group sorting",
            "individual sorting",
            "sort logic",
        ),
        collaborates_with=frozenset({
            AgentDomain.ANALYTICS,
            AgentDomain.PARTICIPANT,
            AgentDomain.FRONTEND_UX,
        }),
        max_concurrency=2,
        resources=("sort-algorithms", "study-templates", "category-management"),
    ),
    AgentCapability(
        domain=AgentDomain.ANALYTICS,
        primary_skills=(
            "similarity-matrix-generation",
            "dendrogram-creation",
            "statistical-analysis",
            "data-visualization",
            "agreement-score-calculations",
            "cross-study-comparison",
            "automatic-insight-generation",
        ),
        secondary_skills=(
            "data-export",
            "report-generation",
            "performance-metrics",
            "trend-analysis",
        ),
        triggers=(
            "analytics",
            "similarity matrix",
            "dendrogram",
            "heatmap",
            "agreement score",
            "statistical analysis",
            "visualization",
            "reporting",
            "insights",
            "clustering",
            "correlation",
            "frequency analysis",
            "cross-study comparison",
            "d3.js",
            "chart",
            "graph",
        ),
        collaborates_with=frozenset({AgentDomain.CARD_SORT, AgentDomain.INTEGRATION}),
        max_concurrency=3,
        boost_terms=("analytics", "visualization", "matrix"),
        resources=("d3.js", "statistical-libraries", "visualization-engines"),
    ),
    AgentCapability(
        domain=AgentDomain.COLLABORATION,
        primary_skills=(
            "real-time-communication",
            "live-session-orchestration",
            "multi-user-coordination",
            "observer-mode-implementation",
            "commenting-annotation-systems",
            "role-permission-management",
        ),
        secondary_skills=(
            "websocket-management",
            "chat-systems",
            "video-integration",
            "team-workflows",
        ),
        triggers=(
            "collaboration",
            "real-time",
            "live session",
            "observer mode",
            "commenting",
            "annotation",
            "team",
            "multi-user",
            "websocket",
            "chat",
            "voice",
            "video recording",
            "moderated session",
            "stakeholder",
            "permission",
            "roles",
        ),
        collaborates_with=frozenset({AgentDomain.PARTICIPANT, AgentDomain.FRONTEND_UX}),
        max_concurrency=2,
        boost_terms=("real-time", "collaboration", "live"),
        resources=("websocket-connections", "real-time-protocols"),
    ),
    AgentCapability(
        domain=AgentDomain.PARTICIPANT,
        primary_skills=(
            "participant-recruitment",
            "screening-question-logic",
            "demographic-management",
            "multi-language-support",
            "incentive-payment-processing",
            "user-onboarding-flows",
        ),
        secondary_skills=(
            "csv-upload-processing",
            "email-management",
            "localization",
            "accessibility-compliance",
        ),
        triggers=(
            "participant",
            "recruitment",
            "screening",
            "demographic",
            "multi-language",
            "localization",
            "i18n",
            "incentive",
            "payment",
            "onboarding",
            "csv upload",
            "email",
            "bulk participant",
            "participant panel",
            "recruitment panel",
        ),
        collaborates_with=frozenset({AgentDomain.COLLABORATION, AgentDomain.FRONTEND_UX}),
        max_concurrency=2,
        boost_terms=("participant", "recruitment", "demographic"),
        resources=("email-services", "csv-processors", "demographic-validators"),
    ),
    AgentCapability(
        domain=AgentDomain.FRONTEND_UX,
        primary_skills=(
            "react-component-architecture",
            "drag-drop-interface",
            "accessibility-compliance",
            "mobile-responsive-design",
            "touch-friendly-interactions",
            "css-styling-systems",
        ),
        secondary_skills=(
            "animation-systems",
            "theme-management",
            "component-library",
            "design-tokens",
        ),
        triggers=(
            "interface",
            "accessibility",
            "mobile",
            "responsive",
            "touch",
            "styling",
            "css",
            "component",
            "react",
            "ui",
            "ux",
            "animation",
            "theme",
            "design",
            "wcag",
            "keyboard navigation",
            "screen reader",
        ),
        collaborates_with=frozenset({AgentDomain.CARD_SORT, AgentDomain.PARTICIPANT}),
        max_concurrency=2,
        boost_terms=("interface", "mobile", "accessibility"),
        resources=("react-components", "responsive-layouts", "accessibility-tools"),
    ),
    AgentCapability(
        domain=AgentDomain.INTEGRATION,
        primary_skills=(
            "api-endpoint-development",
            "database-schema-optimization",
            "external-service-integrations",
            "data-pipeline-architecture",
            "performance-optimization",
            "system-architecture",
        ),
        secondary_skills=(
            "caching-strategies",
            "load-balancing",
            "monitoring-logging",
            "security-implementation",
        ),
        triggers=(
            "api",
            "database",
            "integration",
            "export",
            "import",
            "performance",
            "optimization",
            "architecture",
            "backend",
            "third-party",
            "external service",
            "maze integration",
            "optimal workshop",
            "data pipeline",
            "system design",
            "scalability",
        ),
        collaborates_with=frozenset({AgentDomain.ANALYTICS}),
        max_concurrency=2,
        boost_terms=("api", "integration", "export"),
        resources=("api-endpoints", "database-connections", "external-services"),
    ),
)

DEFAULT_REGISTRY = CapabilityRegistry(DEFAULT_CAPABILITIES)
