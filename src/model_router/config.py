"""Configuration loading for model-router.

Settings live under ~/.model-router/config/ (or $MODEL_ROUTER_HOME):

    default.yaml        plugin settings, merged over DEFAULT_CONFIG
    dimensions.json     scoring dimensions
    tiers.json          tier -> model table and thresholds
    capabilities.json   model capability table

Any JSON file that is absent falls back to the copy bundled with the
package. A file that is present but broken is a ConfigError - routing
tables are never silently defaulted. A broken default.yaml only logs a
warning, since plugin settings all have sane defaults.
"""

import copy
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from model_router.routing.classifier import (
    LENGTH_DIMENSION,
    Dimension,
    DimensionsConfig,
    find_invalid_patterns,
)
from model_router.routing.router import (
    ComplexityTier,
    RouterConfig,
    Thresholds,
    TierConfig,
    TiersConfig,
)
from model_router.routing.scorer import CapabilityRegistry

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).parent / "data"

REQUIRED_THRESHOLDS = (
    "SIMPLE_MAX",
    "COMPLEX_MIN",
    "PREMIUM_MIN",
    "REASONING_TRIGGER",
    "CODING_TRIGGER",
    "CREATIVE_TRIGGER",
)

STRATEGIES = ("cost-optimized", "quality-first", "balanced")

DEFAULT_CONFIG: dict[str, Any] = {
    "enabled": True,
    "strategy": "cost-optimized",
    "models": {
        "free": [
            "openrouter/qwen/qwen3-next-80b-a3b-instruct:free",
            "openrouter/meta-llama/llama-3.3-70b-instruct:free",
            "openrouter/qwen/qwen3-coder:free",
            "openrouter/arcee-ai/trinity-large-preview:free",
            "openrouter/tngtech/deepseek-r1t2-chimera:free",
        ],
        "premium": [
            "google-antigravity/claude-opus-4-5-thinking",
            "anthropic/claude-sonnet-4-5",
            "anthropic/claude-opus-4-5",
        ],
    },
    "timeout_ms": 100,
    "cache_decisions": True,
    "cache_ttl_seconds": 300,
    "log_decisions": True,
    "log_level": "info",
    "log_max_bytes": 10 * 1024 * 1024,
    "channels": {
        "whatsapp": {"enabled": True},
        "telegram": {"enabled": True},
    },
}


class ConfigError(Exception):
    """Raised when routing configuration is missing or malformed."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(f"{message} ({path})" if path else message)
        self.path = path


@dataclass(frozen=True)
class PluginConfig:
    """Plugin behaviour settings (not routing tables)."""
    enabled: bool = True
    strategy: str = "cost-optimized"
    free_models: tuple[str, ...] = ()
    premium_models: tuple[str, ...] = ()
    timeout_ms: int = 100
    cache_decisions: bool = True
    cache_ttl_seconds: int = 300
    log_decisions: bool = True
    log_level: str = "info"
    log_max_bytes: int = 10 * 1024 * 1024
    channels: dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "PluginConfig":
        models = d.get("models") or {}
        strategy = d.get("strategy", "cost-optimized")
        if strategy not in STRATEGIES:
            logger.warning(f"Unknown strategy {strategy!r}, using cost-optimized")
            strategy = "cost-optimized"
        return cls(
            enabled=bool(d.get("enabled", True)),
            strategy=strategy,
            free_models=tuple(models.get("free") or ()),
            premium_models=tuple(models.get("premium") or ()),
            timeout_ms=int(d.get("timeout_ms", 100)),
            cache_decisions=bool(d.get("cache_decisions", True)),
            cache_ttl_seconds=int(d.get("cache_ttl_seconds", 300)),
            log_decisions=bool(d.get("log_decisions", True)),
            log_level=str(d.get("log_level", "info")),
            log_max_bytes=int(d.get("log_max_bytes", 10 * 1024 * 1024)),
            channels={
                name: _channel_enabled(settings)
                for name, settings in (d.get("channels") or {}).items()
            },
        )

    @property
    def candidate_models(self) -> list[str]:
        return [*self.free_models, *self.premium_models]


def _channel_enabled(settings: Any) -> bool:
    # Both "whatsapp: false" and "whatsapp: {enabled: false}" are accepted
    if settings is None:
        return True
    if isinstance(settings, bool):
        return settings
    if isinstance(settings, dict):
        return bool(settings.get("enabled", True))
    raise ValueError(f"channel settings must be a bool or a mapping, got {settings!r}")


def get_home_dir() -> Path:
    """Get the model-router home directory."""
    env = os.environ.get("MODEL_ROUTER_HOME")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".model-router"


def parse_dimensions(data: dict[str, Any], path: Path | None = None) -> DimensionsConfig:
    """Validate and build a DimensionsConfig from parsed JSON."""
    raw = data.get("dimensions") if isinstance(data, dict) else None
    if not isinstance(raw, list) or not raw:
        raise ConfigError("dimensions config must contain a non-empty 'dimensions' list", path)

    dimensions = []
    seen: set[str] = set()
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ConfigError(f"dimension #{i} is not an object", path)
        missing = [k for k in ("name", "weight", "max") if k not in entry]
        if missing:
            raise ConfigError(f"dimension #{i} is missing {', '.join(missing)}", path)
        patterns = entry.get("patterns", [])
        if not isinstance(patterns, list):
            raise ConfigError(f"dimension {entry['name']!r}: patterns must be a list", path)
        if not all(isinstance(p, str) for p in patterns):
            raise ConfigError(f"dimension {entry['name']!r}: patterns must be strings", path)
        if entry["name"] != LENGTH_DIMENSION and not patterns:
            raise ConfigError(f"dimension {entry['name']!r} has no patterns", path)
        try:
            dimension = Dimension.from_dict(entry)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"dimension {entry['name']!r}: {e}", path) from e
        if dimension.max < 1:
            raise ConfigError(f"dimension {dimension.name!r}: max must be >= 1", path)
        if dimension.weight < 0:
            raise ConfigError(f"dimension {dimension.name!r}: weight must be >= 0", path)
        if dimension.name in seen:
            raise ConfigError(f"duplicate dimension {dimension.name!r}", path)
        seen.add(dimension.name)
        dimensions.append(dimension)

    config = DimensionsConfig(
        dimensions=tuple(dimensions),
        version=str(data.get("version", "1.0.0")),
        description=data.get("description", ""),
    )

    for name, pattern, error in find_invalid_patterns(config.dimensions):
        logger.warning(f"Invalid pattern in dimension {name}: {pattern!r} ({error}) - it will never match")

    return config


def parse_tiers(data: dict[str, Any], path: Path | None = None) -> TiersConfig:
    """Validate and build a TiersConfig from parsed JSON."""
    if not isinstance(data, dict):
        raise ConfigError("tiers config must be an object", path)

    raw_tiers = data.get("tiers") or {}
    tiers: dict[ComplexityTier, TierConfig] = {}
    for tier in ComplexityTier:
        entry = raw_tiers.get(tier.value)
        if not isinstance(entry, dict):
            raise ConfigError(f"tier {tier.value} is not configured", path)
        if not entry.get("paid"):
            raise ConfigError(f"tier {tier.value} has no paid model", path)
        tiers[tier] = TierConfig.from_dict(entry)

    raw_thresholds = data.get("thresholds") or {}
    missing = [k for k in REQUIRED_THRESHOLDS if k not in raw_thresholds]
    if missing:
        raise ConfigError(f"missing thresholds: {', '.join(missing)}", path)
    try:
        thresholds = Thresholds.from_dict(raw_thresholds)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid threshold value: {e}", path) from e

    return TiersConfig(
        tiers=tiers,
        thresholds=thresholds,
        version=str(data.get("version", "1.0.0")),
        description=data.get("description", ""),
    )


def parse_capabilities(data: dict[str, Any], path: Path | None = None) -> CapabilityRegistry:
    """Validate and build a CapabilityRegistry from parsed JSON."""
    if not isinstance(data, dict):
        raise ConfigError("capabilities config must be an object", path)
    try:
        return CapabilityRegistry.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ConfigError(f"invalid capability table: {e}", path) from e


class ConfigManager:
    """Loads and holds the plugin settings and routing tables.

    Usage:
        manager = ConfigManager()
        manager.load()
        router = ModelRouter(manager.snapshot())
    """

    def __init__(self, base_dir: Path | str | None = None):
        self.base_dir = Path(base_dir).expanduser() if base_dir else get_home_dir()
        self.config_dir = self.base_dir / "config"
        self._config: PluginConfig | None = None
        self._snapshot: RouterConfig | None = None

    def load(self) -> RouterConfig:
        """Load everything. Raises ConfigError on a broken routing table."""
        config = self._load_plugin_config()
        snapshot = RouterConfig(
            dimensions=parse_dimensions(*self._load_json("dimensions.json")),
            tiers=parse_tiers(*self._load_json("tiers.json")),
            capabilities=parse_capabilities(*self._load_json("capabilities.json")),
        )
        # Assign only once everything parsed, so a failed reload leaves
        # the previous state intact
        self._config = config
        self._snapshot = snapshot
        return snapshot

    def _load_plugin_config(self) -> PluginConfig:
        merged = copy.deepcopy(DEFAULT_CONFIG)
        config_file = self.config_dir / "default.yaml"
        if config_file.exists():
            try:
                with open(config_file) as f:
                    loaded = yaml.safe_load(f) or {}
                if not isinstance(loaded, dict):
                    raise ValueError("top level must be a mapping")
                merged.update(loaded)
                return PluginConfig.from_dict(merged)
            except (OSError, ValueError, TypeError, AttributeError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {config_file}, using defaults: {e}")
        return PluginConfig.from_dict(DEFAULT_CONFIG)

    def _load_json(self, filename: str) -> tuple[dict[str, Any], Path]:
        path = self.config_dir / filename
        if not path.exists():
            path = DATA_DIR / filename
        if not path.exists():
            raise ConfigError(f"{filename} not found in config or package data", path)
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f), path
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"failed to read {filename}: {e}", path) from e

    def _require_loaded(self) -> None:
        if self._config is None or self._snapshot is None:
            raise ConfigError("configuration not loaded, call load() first")

    def get_config(self) -> PluginConfig:
        self._require_loaded()
        return self._config

    def snapshot(self) -> RouterConfig:
        self._require_loaded()
        return self._snapshot

    def get_dimensions(self) -> DimensionsConfig:
        return self.snapshot().dimensions

    def get_tiers(self) -> TiersConfig:
        return self.snapshot().tiers

    def get_capabilities(self) -> CapabilityRegistry:
        return self.snapshot().capabilities

    def is_enabled(self, channel: str | None = None) -> bool:
        """Whether routing is on globally and for ``channel``."""
        config = self.get_config()
        if not config.enabled:
            return False
        if channel and channel in config.channels:
            return config.channels[channel]
        return True

    def get_strategy(self) -> str:
        return self.get_config().strategy

    def prefer_free(self) -> bool:
        """Only the cost-optimized strategy prefers free models."""
        return self.get_strategy() == "cost-optimized"


def load_router_config(base_dir: Path | str | None = None) -> RouterConfig:
    """Convenience: load a RouterConfig snapshot in one call."""
    return ConfigManager(base_dir).load()
