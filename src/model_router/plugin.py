"""Host plugin for model-router.

Lifecycle:
    init()                      load config, build router + decision log
    on_message_before_agent()   route a message, set context.model_override
    reload()                    rebuild from disk and swap atomically
    destroy()                   drop everything

Once initialized, the message hook never raises: any failure is logged
and the host's context is returned untouched, so the host falls back to
its default model.
"""

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from model_router import __version__
from model_router.config import ConfigManager, PluginConfig
from model_router.decisions import DecisionLogger
from model_router.routing.router import MessageContext, ModelRouter, RoutingResult

metadata = {
    "name": "model-router",
    "version": __version__,
    "description": "Routes each message to a free or paid LLM by request complexity",
}

MAX_CACHE_ENTRIES = 512


@dataclass
class PluginContext:
    """What the host passes to (and reads back from) the plugin."""
    config_path: str | None = None
    logger: logging.Logger | None = None
    model_override: str | None = None


class ModelRouterPlugin:
    """Wires config, router and decision log into the host's message hook.

    Usage:
        plugin = ModelRouterPlugin()
        plugin.init()
        ctx = plugin.on_message_before_agent(MessageContext(text="hi"), PluginContext())
        # ctx.model_override = "openrouter/qwen/qwen3-next-80b-a3b-instruct:free"
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("model_router.plugin")
        self.router: ModelRouter | None = None
        self.config_manager: ConfigManager | None = None
        self.decision_logger: DecisionLogger | None = None
        self.initialized = False
        self._config_path: Path | None = None

        # (text, prefer_free) -> (expires_at, result), shared by concurrent hook calls
        self._cache: dict[tuple[str, bool], tuple[float, RoutingResult]] = {}
        self._cache_lock = threading.Lock()

    def init(self, config_path: str | Path | None = None) -> None:
        """Load configuration and build the router.

        Raises ConfigError if the routing tables are broken.
        """
        self.logger.info(f"Initializing model-router plugin v{__version__}...")
        self._config_path = Path(config_path) if config_path else None
        try:
            manager = ConfigManager(self._config_path)
            snapshot = manager.load()
        except Exception as e:
            self.logger.error(f"Failed to initialize model-router plugin: {e}")
            raise

        config = manager.get_config()
        self.config_manager = manager
        self.router = ModelRouter(snapshot)
        self.decision_logger = _decision_logger_for(manager)
        self._clear_cache()
        self.initialized = True

        self.logger.info(
            f"Loaded {len(snapshot.dimensions.dimensions)} dimensions and "
            f"{len(snapshot.tiers.tiers)} tiers (strategy: {config.strategy})"
        )

    def reload(self) -> None:
        """Re-read configuration and swap in a new router and decision log.

        Calls already holding the old router finish against the old
        snapshot. If loading fails the current router stays in place.
        """
        if not self.initialized or self.config_manager is None:
            raise RuntimeError("Plugin not initialized. Call init() first.")

        snapshot = self.config_manager.load()
        router = ModelRouter(snapshot)
        decision_logger = _decision_logger_for(self.config_manager)
        self.router = router
        self.decision_logger = decision_logger
        self._clear_cache()
        self.logger.info("Configuration reloaded")

    def on_message_before_agent(
        self,
        message: MessageContext,
        context: PluginContext,
    ) -> PluginContext:
        """Hook: pick a model for ``message`` and set it on ``context``."""
        router = self.router
        if not self.initialized or router is None or self.config_manager is None:
            self.logger.warning("Plugin not initialized, skipping routing")
            return context

        try:
            if not self.config_manager.is_enabled(message.channel):
                self.logger.debug(f"Routing disabled for channel: {message.channel}")
                return context

            start = time.perf_counter()
            config = self.config_manager.get_config()
            result = self._route_cached(router, message.text, self.config_manager.prefer_free(), config)

            if self.decision_logger:
                self.decision_logger.log_decision(
                    message.id,
                    message.channel,
                    result,
                    f"{result.tier.value} tier detected with "
                    f"{result.confidence * 100:.1f}% confidence",
                )

            context.model_override = result.full_model

            duration_ms = (time.perf_counter() - start) * 1000
            if duration_ms > config.timeout_ms:
                self.logger.warning(
                    f"Routing took {duration_ms:.1f}ms, over the {config.timeout_ms}ms budget")
            self.logger.info(
                f"Routed to {result.model} ({result.tier.value}) in {duration_ms:.1f}ms "
                f"[confidence: {result.confidence * 100:.1f}%]"
            )

            if self.decision_logger:
                self.decision_logger.rotate_log_if_needed()

            return context
        except Exception as e:
            self.logger.error(f"Routing failed, using default model: {e}")
            return context

    def route(self, text: str, channel: str = "default", prefer_free: bool | None = None) -> RoutingResult:
        """Route a message outside the host hook."""
        if self.router is None or self.config_manager is None:
            raise RuntimeError("Plugin not initialized. Call init() first.")
        if prefer_free is None:
            prefer_free = self.config_manager.prefer_free()
        message = MessageContext(text=text, channel=channel)
        return self.router.route(message, prefer_free)

    def score_models(self, text: str, models: list[str] | None = None) -> dict[str, float]:
        """Score candidate models; defaults to the configured free + premium lists."""
        if self.router is None or self.config_manager is None:
            raise RuntimeError("Plugin not initialized. Call init() first.")
        candidates = models or self.config_manager.get_config().candidate_models
        return self.router.score_models(text, candidates)

    def format_result(self, result: RoutingResult, verbose: bool = False) -> str:
        if self.router is None:
            raise RuntimeError("Plugin not initialized. Call init() first.")
        return self.router.format_result(result, verbose)

    def destroy(self) -> None:
        """Release everything; the hook becomes a no-op."""
        self.logger.info("model-router plugin shutting down")
        self.initialized = False
        self.router = None
        self.config_manager = None
        self.decision_logger = None
        self._clear_cache()

    def get_status(self) -> dict[str, Any]:
        manager = self.config_manager
        with self._cache_lock:
            cached = len(self._cache)
        return {
            "initialized": self.initialized,
            "version": __version__,
            "enabled": manager.is_enabled() if manager else False,
            "strategy": manager.get_strategy() if manager else "unknown",
            "cached_decisions": cached,
        }

    def _clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    def _route_cached(
        self,
        router: ModelRouter,
        text: str,
        prefer_free: bool,
        config: PluginConfig,
    ) -> RoutingResult:
        if not config.cache_decisions:
            return router.route(text, prefer_free)

        now = time.time()
        key = (text, prefer_free)
        with self._cache_lock:
            hit = self._cache.get(key)
        if hit and hit[0] > now:
            return hit[1]

        # Routing runs outside the lock; two threads may compute the same
        # entry and the later one wins
        result = router.route(text, prefer_free)
        with self._cache_lock:
            if len(self._cache) >= MAX_CACHE_ENTRIES:
                self._evict(now)
            self._cache[key] = (now + config.cache_ttl_seconds, result)
        return result

    def _evict(self, now: float) -> None:
        # Caller holds _cache_lock
        expired = [k for k, (expires, _) in self._cache.items() if expires <= now]
        for k in expired:
            del self._cache[k]
        # Still full: drop the oldest insertion
        if len(self._cache) >= MAX_CACHE_ENTRIES:
            del self._cache[next(iter(self._cache))]


def _decision_logger_for(manager: ConfigManager) -> DecisionLogger:
    config = manager.get_config()
    return DecisionLogger(
        enabled=config.log_decisions,
        log_dir=manager.base_dir / "logs",
        max_bytes=config.log_max_bytes,
    )


def create_plugin(context: PluginContext | None = None) -> ModelRouterPlugin:
    """Factory used by hosts that load plugins by entry point."""
    return ModelRouterPlugin(context.logger if context else None)
