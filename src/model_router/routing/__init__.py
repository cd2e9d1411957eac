"""Routing core: classify a request, resolve its tier, pick a model.

- classifier: dimension scores from regex pattern sets plus length bands
- scorer: 14-criteria capability score for ranking arbitrary models
- router: ordered tier rules, free/paid selection, sigmoid confidence

Routing is 100% local and synchronous - no model is ever called.
"""

from model_router.routing.classifier import (
    Dimension,
    DimensionsConfig,
    MessageClassifier,
    MessageFeatures,
)
from model_router.routing.scorer import (
    CapabilityRegistry,
    ModelCapability,
    ModelScorer,
)
from model_router.routing.router import (
    TIER_RULES,
    ComplexityTier,
    MessageContext,
    ModelRouter,
    RouterConfig,
    RoutingResult,
    Thresholds,
    TierConfig,
    TierRule,
    TiersConfig,
    calculate_confidence,
    resolve_tier,
    select_model,
)

__all__ = [
    "Dimension",
    "DimensionsConfig",
    "MessageClassifier",
    "MessageFeatures",
    "CapabilityRegistry",
    "ModelCapability",
    "ModelScorer",
    "TIER_RULES",
    "ComplexityTier",
    "MessageContext",
    "ModelRouter",
    "RouterConfig",
    "RoutingResult",
    "Thresholds",
    "TierConfig",
    "TierRule",
    "TiersConfig",
    "calculate_confidence",
    "resolve_tier",
    "select_model",
]
