"""
Configuration Manager - orchestrator settings and runtime updates.

Owns the default configuration and a working copy that callers update
through partial merges, named performance profiles, or JSON import. Readers
always get deep copies, so a snapshot taken for an in-flight task is never
altered by later updates.
"""

import copy
import json
import threading
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Union

from .capabilities import AgentDomain
from .exceptions import ConfigValidationError
from .logging_config import get_logger
from .models import CoordinationPattern
from .quality import QualityConfig
from .validation import ValidationResult

logger = get_logger("config_manager")

PROFILES = ("development", "production", "testing")


@dataclass
class AgentConfig:
    """Runtime settings for one agent domain."""
    enabled: bool = True
    priority: int = 5
    triggers: List[str] = field(default_factory=list)
    max_concurrency: int = 2
    timeout_ms: float = 30000
    quality_threshold: float = 0.7
    specializations: List[str] = field(default_factory=list)


@dataclass
class OrchestratorSettings:
    """Engine-wide limits and switches."""
    default_coordination: CoordinationPattern = CoordinationPattern.SEQUENTIAL
    max_concurrent_agents: int = 3
    quality_gates: bool = True
    timeout_ms: float = 300000
    retry_attempts: int = 2
    minimum_quality_score: float = 70.0
    require_all_checks_to_pass: bool = False


@dataclass
class RoutingSettings:
    """Routing weights and complexity thresholds."""
    keyword_weights: Dict[str, float] = field(default_factory=dict)
    domain_priorities: Dict[AgentDomain, int] = field(default_factory=dict)
    complexity_thresholds: Dict[str, float] = field(default_factory=dict)


@dataclass
class OrchestratorConfig:
    """Complete orchestrator configuration."""
    agents: Dict[AgentDomain, AgentConfig] = field(default_factory=dict)
    orchestrator: OrchestratorSettings = field(default_factory=OrchestratorSettings)
    routing: RoutingSettings = field(default_factory=RoutingSettings)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form; enums become their values."""
        orchestrator = asdict(self.orchestrator)
        orchestrator["default_coordination"] = self.orchestrator.default_coordination.value
        return {
            "agents": {domain.value: asdict(agent) for domain, agent in self.agents.items()},
            "orchestrator": orchestrator,
            "routing": {
                "keyword_weights": dict(self.routing.keyword_weights),
                "domain_priorities": {d.value: p for d, p in self.routing.domain_priorities.items()},
                "complexity_thresholds": dict(self.routing.complexity_thresholds),
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OrchestratorConfig":
        """Inverse of ``to_dict``; unknown keys raise ConfigValidationError."""
        _reject_unknown(data, {"agents", "orchestrator", "routing"}, "config")

        agents = {}
        for key, values in (data.get("agents") or {}).items():
            agents[_as_domain(key)] = _build(AgentConfig, values, f"agents.{_domain_name(key)}")

        orchestrator_data = dict(data.get("orchestrator") or {})
        if "default_coordination" in orchestrator_data:
            orchestrator_data["default_coordination"] = _as_pattern(orchestrator_data["default_coordination"])
        orchestrator = _build(OrchestratorSettings, orchestrator_data, "orchestrator")

        routing_data = dict(data.get("routing") or {})
        if "domain_priorities" in routing_data:
            routing_data["domain_priorities"] = {
                _as_domain(key): value for key, value in routing_data["domain_priorities"].items()
            }
        routing = _build(RoutingSettings, routing_data, "routing")

        return cls(agents=agents, orchestrator=orchestrator, routing=routing)


def _domain_name(key: Union[AgentDomain, str]) -> str:
    return key.value if isinstance(key, AgentDomain) else str(key)


def _as_domain(key: Union[AgentDomain, str]) -> AgentDomain:
    if isinstance(key, AgentDomain):
        return key
    try:
        return AgentDomain(key)
    except ValueError:
        raise ConfigValidationError(f"Unknown agent domain: {key!r}", [f"Unknown agent domain: {key!r}"])


def _as_pattern(value: Union[CoordinationPattern, str]) -> CoordinationPattern:
    if isinstance(value, CoordinationPattern):
        return value
    try:
        return CoordinationPattern(value)
    except ValueError:
        raise ConfigValidationError(
            f"Unknown coordination pattern: {value!r}",
            [f"Unknown coordination pattern: {value!r}"]
        )


def _reject_unknown(data: Mapping[str, Any], allowed, where: str) -> None:
    unknown = sorted(str(key) for key in data if key not in allowed)
    if unknown:
        message = f"Unknown {where} setting(s): {', '.join(unknown)}"
        raise ConfigValidationError(message, [message])


def _build(cls, values: Mapping[str, Any], where: str):
    if not isinstance(values, Mapping):
        raise ConfigValidationError(f"{where} must be a mapping", [f"{where} must be a mapping"])
    _reject_unknown(values, {f.name for f in fields(cls)}, where)
    return cls(**copy.deepcopy(dict(values)))


def _as_override(update: Union["OrchestratorConfig", Mapping[str, Any], None]) -> Dict[str, Any]:
    if update is None:
        return {}
    if isinstance(update, OrchestratorConfig):
        return update.to_dict()
    if not isinstance(update, Mapping):
        raise ConfigValidationError(
            f"Config update must be a mapping or OrchestratorConfig, got {type(update).__name__}"
        )
    _reject_unknown(update, {"agents", "orchestrator", "routing"}, "config")
    return dict(update)


def merge_configs(
    base: OrchestratorConfig,
    override: Union[OrchestratorConfig, Mapping[str, Any], None]
) -> OrchestratorConfig:
    """
    Merge a partial override onto a base configuration.

    Agents merge key-by-key, each agent's settings shallow-merged over the
    base agent; the orchestrator and routing blocks are shallow-merged as
    whole objects. The base is never mutated.
    """
    merged = base.to_dict()
    override = _as_override(override)

    if override.get("agents"):
        for key, agent_values in override["agents"].items():
            name = _as_domain(key).value
            current = merged["agents"].get(name, asdict(AgentConfig()))
            if isinstance(agent_values, AgentConfig):
                agent_values = asdict(agent_values)
            if not isinstance(agent_values, Mapping):
                raise ConfigValidationError(f"agents.{name} must be a mapping")
            merged["agents"][name] = {**current, **agent_values}

    for block in ("orchestrator", "routing"):
        values = override.get(block)
        if values:
            if not isinstance(values, Mapping):
                values = asdict(values)
            merged[block] = {**merged[block], **values}

    return OrchestratorConfig.from_dict(merged)


def create_default_config() -> OrchestratorConfig:
    """Built-in defaults for every agent, the engine and routing."""
    agents = {
        AgentDomain.CARD_SORT: AgentConfig(
            priority=8,
            triggers=["sort", "card", "category", "study", "algorithm"],
            specializations=["sorting-algorithms", "study-configuration", "participant-flow"],
        ),
        AgentDomain.ANALYTICS: AgentConfig(
            priority=7,
            max_concurrency=3,
            timeout_ms=45000,
            triggers=["analytics", "visualization", "matrix", "dendrogram", "statistics"],
            specializations=["data-analysis", "visualizations", "statistical-processing"],
        ),
        AgentDomain.COLLABORATION: AgentConfig(
            priority=6,
            timeout_ms=20000,
            triggers=["collaboration", "real-time", "live", "observer", "team"],
            specializations=["real-time-features", "multi-user-coordination", "live-sessions"],
        ),
        AgentDomain.PARTICIPANT: AgentConfig(
            priority=6,
            triggers=["participant", "recruitment", "demographic", "screening", "incentive"],
            specializations=["user-management", "recruitment", "demographics", "localization"],
        ),
        AgentDomain.FRONTEND_UX: AgentConfig(
            priority=7,
            triggers=["interface", "ui", "ux", "accessibility", "mobile", "responsive"],
            specializations=["react-components", "accessibility", "responsive-design", "user-experience"],
        ),
        AgentDomain.INTEGRATION: AgentConfig(
            priority=5,
            timeout_ms=60000,
            triggers=["api", "integration", "export", "database", "external"],
            specializations=["api-development", "data-integration", "external-services", "system-architecture"],
        ),
    }

    routing = RoutingSettings(
        keyword_weights={
            "analytics": 2.0,
            "real-time": 2.0,
            "collaboration": 1.8,
            "accessibility": 1.8,
            "integration": 1.5,
            "visualization": 1.5,
            "drag and drop": 1.5,
            "mobile": 1.3,
            "responsive": 1.3,
            "sort": 1.2,
            "card": 1.2,
            "participant": 1.2,
        },
        domain_priorities={
            AgentDomain.ANALYTICS: 8,
            AgentDomain.CARD_SORT: 8,
            AgentDomain.FRONTEND_UX: 7,
            AgentDomain.COLLABORATION: 6,
            AgentDomain.PARTICIPANT: 6,
            AgentDomain.INTEGRATION: 5,
        },
        complexity_thresholds={"simple": 3, "moderate": 8, "complex": 15},
    )

    return OrchestratorConfig(agents=agents, orchestrator=OrchestratorSettings(), routing=routing)


def validate_config(config: OrchestratorConfig) -> ValidationResult:
    """
    Check a configuration for hard issues and soft warnings.

    Issues make the config unusable; warnings are reported but accepted.
    """
    issues = []
    warnings = []
    settings = config.orchestrator

    if settings.max_concurrent_agents < 1:
        issues.append("Maximum concurrent agents must be at least 1")

    if settings.timeout_ms < 1000:
        warnings.append(f"Timeout less than 1000ms may cause frequent timeouts ({settings.timeout_ms:g}ms)")

    if settings.retry_attempts < 0:
        issues.append("Retry attempts cannot be negative")

    if not 0 <= settings.minimum_quality_score <= 100:
        issues.append("Minimum quality score must be between 0 and 100")

    for domain, agent in config.agents.items():
        if agent.max_concurrency < 1:
            issues.append(f"Agent {domain.value} maxConcurrency must be at least 1")

        if agent.timeout_ms <= 0:
            issues.append(f"Agent {domain.value} timeout must be positive")
        elif agent.timeout_ms < 100:
            warnings.append(f"Agent {domain.value} timeout is very low ({agent.timeout_ms:g}ms)")

        if not 0 <= agent.quality_threshold <= 1:
            issues.append(f"Agent {domain.value} quality threshold must be between 0 and 1")

        if not agent.triggers:
            warnings.append(f"Agent {domain.value} has no triggers defined")

    if not config.routing.keyword_weights:
        warnings.append("No keyword weights defined for routing")

    if not any(agent.enabled for agent in config.agents.values()):
        issues.append("At least one agent must be enabled")

    return ValidationResult(valid=len(issues) == 0, issues=issues, warnings=warnings)


class ConfigManager:
    """
    Owner of mutable orchestrator configuration.

    Thread-safe: every read returns a deep copy and every write replaces the
    working copy under a lock.
    """

    def __init__(self, initial_config: Union[OrchestratorConfig, Mapping[str, Any], None] = None):
        self._lock = threading.RLock()
        self._default_config = create_default_config()
        self._config = merge_configs(self._default_config, initial_config)

    def get_config(self) -> OrchestratorConfig:
        with self._lock:
            return copy.deepcopy(self._config)

    def get_default_config(self) -> OrchestratorConfig:
        return copy.deepcopy(self._default_config)

    def update_config(self, update: Union[OrchestratorConfig, Mapping[str, Any]]) -> OrchestratorConfig:
        """Merge a partial update into the working configuration."""
        with self._lock:
            self._config = merge_configs(self._config, update)
            logger.info(f"Configuration updated: {sorted(_as_override(update))}")
            return copy.deepcopy(self._config)

    def get_agent_config(self, domain: AgentDomain) -> AgentConfig:
        with self._lock:
            agent = self._config.agents.get(domain)
            return copy.deepcopy(agent) if agent else AgentConfig(enabled=False)

    def update_agent_config(self, domain: AgentDomain, update: Mapping[str, Any]) -> AgentConfig:
        self.update_config({"agents": {domain: dict(update)}})
        logger.info(f"Agent {domain.value} configuration updated: {sorted(update)}")
        return self.get_agent_config(domain)

    def set_agent_enabled(self, domain: AgentDomain, enabled: bool) -> None:
        self.update_config({"agents": {domain: {"enabled": enabled}}})
        logger.info(f"Agent {domain.value} {'enabled' if enabled else 'disabled'}")

    def set_agent_priority(self, domain: AgentDomain, priority: int) -> None:
        self.update_config({"agents": {domain: {"priority": priority}}})
        logger.info(f"Agent {domain.value} priority set to {priority}")

    def get_enabled_agents(self) -> List[AgentDomain]:
        """Enabled agents, highest priority first."""
        with self._lock:
            enabled = [(domain, agent) for domain, agent in self._config.agents.items() if agent.enabled]
        enabled.sort(key=lambda item: item[1].priority, reverse=True)
        return [domain for domain, _ in enabled]

    def get_routing_config(self) -> RoutingSettings:
        with self._lock:
            return copy.deepcopy(self._config.routing)

    def get_quality_config(self, config: Optional[OrchestratorConfig] = None) -> QualityConfig:
        """Quality assurance settings derived from a config (default: working copy)."""
        config = config or self.get_config()
        return QualityConfig(
            enable_quality_gates=config.orchestrator.quality_gates,
            minimum_quality_score=config.orchestrator.minimum_quality_score,
            require_all_checks_to_pass=config.orchestrator.require_all_checks_to_pass,
            agent_specific_validation=True,
            timeout_thresholds={domain: agent.timeout_ms for domain, agent in config.agents.items()},
        )

    def reset_to_defaults(self) -> None:
        with self._lock:
            self._config = copy.deepcopy(self._default_config)
        logger.info("Configuration reset to defaults")

    def validate_config(self, config: Optional[OrchestratorConfig] = None) -> ValidationResult:
        return validate_config(config if config is not None else self.get_config())

    def export_config(self) -> str:
        with self._lock:
            return json.dumps(self._config.to_dict(), indent=2)

    def import_config(self, serialized: str) -> ValidationResult:
        """
        Replace the working configuration with an imported one.

        The imported document is merged over the defaults and validated
        before it is committed; on any failure the current configuration is
        left untouched and the issues are reported.
        """
        try:
            data = json.loads(serialized)
            candidate = merge_configs(self._default_config, data)
            validation = validate_config(candidate)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to import configuration: invalid JSON ({e})")
            return ValidationResult(valid=False, issues=[f"Invalid JSON: {e}"])
        except ConfigValidationError as e:
            logger.error(f"Failed to import configuration: {e}")
            return ValidationResult(valid=False, issues=e.issues or [str(e)])
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to import configuration: {e}")
            return ValidationResult(valid=False, issues=[f"Malformed configuration: {e}"])

        if not validation.valid:
            logger.error(f"Import failed - validation errors: {validation.issues}")
            return validation

        with self._lock:
            self._config = candidate

        logger.info("Configuration imported successfully")
        if validation.warnings:
            logger.warning(f"Import warnings: {validation.warnings}")
        return validation

    def apply_profile(self, profile: str) -> OrchestratorConfig:
        """Apply a named performance profile to the working configuration."""
        appliers = {
            "development": _apply_development_profile,
            "production": _apply_production_profile,
            "testing": _apply_testing_profile,
        }
        applier = appliers.get(profile)
        if applier is None:
            message = f"Unknown performance profile: {profile!r} (expected one of {', '.join(PROFILES)})"
            raise ConfigValidationError(message, [message])

        with self._lock:
            config = copy.deepcopy(self._config)
            applier(config)
            self._config = config

        logger.info(f"Applied {profile} performance profile")
        return self.get_config()


def _apply_development_profile(config: OrchestratorConfig) -> None:
    # Relaxed timeouts and quality for faster iteration
    for agent in config.agents.values():
        agent.timeout_ms *= 2
        agent.quality_threshold = 0.5
    config.orchestrator.timeout_ms = 600000
    config.orchestrator.retry_attempts = 1


def _apply_production_profile(config: OrchestratorConfig) -> None:
    for agent in config.agents.values():
        agent.timeout_ms = min(agent.timeout_ms, 30000)
        agent.quality_threshold = 0.8
    config.orchestrator.timeout_ms = 180000
    config.orchestrator.retry_attempts = 3
    config.orchestrator.quality_gates = True


def _apply_testing_profile(config: OrchestratorConfig) -> None:
    for agent in config.agents.values():
        agent.timeout_ms = 10000
        agent.quality_threshold = 0.3
    config.orchestrator.timeout_ms = 60000
    config.orchestrator.retry_attempts = 0
    config.orchestrator.quality_gates = False
