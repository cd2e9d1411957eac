"""Tier-based model router.

Routes each request to a model in four steps:
- Score the request text on every configured dimension (classifier)
- Resolve a complexity tier with an ordered, first-match-wins rule table
- Pick the tier's free or paid model depending on cost preference
- Calibrate a confidence from the total score with a sigmoid

The router holds no mutable state: every decision is derived from the
request and an immutable RouterConfig snapshot, so one router can be
shared across threads and replaced wholesale on config reload.
"""

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping

from .classifier import DimensionsConfig, MessageClassifier
from .scorer import CapabilityRegistry, ModelScorer

SIGMOID_K = 10.0
SIGMOID_MIDPOINT = 0.3
DEFAULT_MULTISTEP_TRIGGER = 0.10


class ComplexityTier(str, Enum):
    """Complexity tiers, each mapped to a free/paid model pair."""
    SIMPLE = "SIMPLE"
    CODING = "CODING"
    CREATIVE = "CREATIVE"
    REASONING = "REASONING"
    COMPLEX = "COMPLEX"
    PREMIUM = "PREMIUM"


@dataclass(frozen=True)
class TierConfig:
    """Model pair for one tier. PREMIUM has no free entry."""
    description: str
    paid: str
    full_paid: str
    free: str | None = None
    full_free: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "TierConfig":
        return cls(
            description=d.get("description", ""),
            paid=d["paid"],
            full_paid=d.get("fullPaid") or d["paid"],
            free=d.get("free"),
            full_free=d.get("fullFree") or d.get("free"),
        )


@dataclass(frozen=True)
class Thresholds:
    """Trigger and band values used by the tier rules."""
    simple_max: float
    complex_min: float
    premium_min: float
    reasoning_trigger: float
    coding_trigger: float
    creative_trigger: float
    multistep_trigger: float = DEFAULT_MULTISTEP_TRIGGER

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Thresholds":
        multistep = d.get("MULTISTEP_TRIGGER")
        return cls(
            simple_max=float(d["SIMPLE_MAX"]),
            complex_min=float(d["COMPLEX_MIN"]),
            premium_min=float(d["PREMIUM_MIN"]),
            reasoning_trigger=float(d["REASONING_TRIGGER"]),
            coding_trigger=float(d["CODING_TRIGGER"]),
            creative_trigger=float(d["CREATIVE_TRIGGER"]),
            multistep_trigger=(
                float(multistep) if multistep else DEFAULT_MULTISTEP_TRIGGER),
        )


@dataclass(frozen=True)
class TiersConfig:
    """Tier table plus thresholds loaded from tiers.json."""
    tiers: Mapping[ComplexityTier, TierConfig]
    thresholds: Thresholds
    version: str = "1.0.0"
    description: str = ""

    def __getitem__(self, tier: ComplexityTier) -> TierConfig:
        return self.tiers[tier]


@dataclass(frozen=True)
class RouterConfig:
    """Immutable snapshot of everything a routing decision reads."""
    dimensions: DimensionsConfig
    tiers: TiersConfig
    capabilities: CapabilityRegistry


@dataclass
class MessageContext:
    """An incoming message as handed over by the host."""
    text: str
    id: str = ""
    channel: str = "default"
    sender: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self):
        if not self.id:
            self.id = f"msg-{int(self.timestamp * 1000)}"


@dataclass(frozen=True)
class RoutingResult:
    """The outcome of one routing decision."""
    tier: ComplexityTier
    model: str
    full_model: str
    confidence: float
    total_score: float
    scores: Mapping[str, float]
    description: str
    fallback: str | None = None
    full_fallback: str | None = None
    matched_rule: str = ""
    execution_time_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier": self.tier.value,
            "model": self.model,
            "fullModel": self.full_model,
            "fallback": self.fallback,
            "fullFallback": self.full_fallback,
            "confidence": self.confidence,
            "totalScore": self.total_score,
            "scores": dict(self.scores),
            "description": self.description,
            "matchedRule": self.matched_rule,
            "executionTimeMs": self.execution_time_ms,
        }


@dataclass(frozen=True)
class TierRule:
    """One row of the tier resolution table."""
    name: str
    tier: ComplexityTier
    applies: Callable[[Mapping[str, float], float, Thresholds], bool]
    rationale: str


def _at_least(scores: Mapping[str, float], name: str, threshold: float) -> bool:
    # A dimension that is not configured never fires its trigger
    return name in scores and scores[name] >= threshold


# Order matters: the first rule that applies wins. Specialist triggers
# come before the generic total-score bands.
TIER_RULES: tuple[TierRule, ...] = (
    TierRule(
        "reasoning-trigger", ComplexityTier.REASONING,
        lambda s, total, t: _at_least(s, "reasoning", t.reasoning_trigger),
        "reasoning signals meet REASONING_TRIGGER",
    ),
    TierRule(
        "coding-trigger", ComplexityTier.CODING,
        lambda s, total, t: _at_least(s, "code", t.coding_trigger),
        "code signals meet CODING_TRIGGER",
    ),
    TierRule(
        "creative-trigger", ComplexityTier.CREATIVE,
        lambda s, total, t: _at_least(s, "creative", t.creative_trigger),
        "creative signals meet CREATIVE_TRIGGER",
    ),
    TierRule(
        "multistep-trigger", ComplexityTier.COMPLEX,
        lambda s, total, t: _at_least(s, "multistep", t.multistep_trigger),
        "multi-step signals meet MULTISTEP_TRIGGER",
    ),
    TierRule(
        "simple-signal", ComplexityTier.SIMPLE,
        lambda s, total, t: _at_least(s, "simple", 0.10) and total < 0.30,
        "simple phrasing with a low total keeps stray technical terms from bumping the tier",
    ),
    TierRule(
        "below-simple-max", ComplexityTier.SIMPLE,
        lambda s, total, t: total < t.simple_max,
        "total score below SIMPLE_MAX",
    ),
    TierRule(
        "premium-band", ComplexityTier.PREMIUM,
        lambda s, total, t: total >= t.premium_min,
        "total score at or above PREMIUM_MIN",
    ),
    TierRule(
        "complex-band", ComplexityTier.COMPLEX,
        lambda s, total, t: total >= t.complex_min,
        "total score at or above COMPLEX_MIN",
    ),
    TierRule(
        "default", ComplexityTier.COMPLEX,
        lambda s, total, t: True,
        "no other rule applied",
    ),
)


def resolve_tier(
    scores: Mapping[str, float],
    total_score: float,
    thresholds: Thresholds,
    rules: tuple[TierRule, ...] = TIER_RULES,
) -> TierRule:
    """Return the first rule in ``rules`` that applies."""
    for rule in rules:
        if rule.applies(scores, total_score, thresholds):
            return rule
    # Unreachable with TIER_RULES, whose last rule always applies
    return rules[-1]


@dataclass(frozen=True)
class ModelSelection:
    model: str
    full_model: str
    fallback: str | None = None
    full_fallback: str | None = None


def select_model(tier_config: TierConfig, prefer_free: bool) -> ModelSelection:
    """Free model with the paid one as fallback, or the paid model alone."""
    if prefer_free and tier_config.free:
        return ModelSelection(
            model=tier_config.free,
            full_model=tier_config.full_free or tier_config.free,
            fallback=tier_config.paid,
            full_fallback=tier_config.full_paid,
        )
    return ModelSelection(model=tier_config.paid, full_model=tier_config.full_paid)


def calculate_confidence(total_score: float) -> float:
    """Map an unbounded total score into [0, 1] with a sigmoid."""
    z = SIGMOID_K * (total_score - SIGMOID_MIDPOINT)
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    # Same curve, written so exp() cannot overflow for very negative totals
    e = math.exp(z)
    return e / (1.0 + e)


class ModelRouter:
    """Routes requests to a tier's model based on complexity.

    Usage:
        router = ModelRouter(config)
        result = router.route("Write a Python function to sort an array")
        # result.tier = ComplexityTier.CODING
        # result.model = "qwen3-coder:free", result.fallback = "claude-sonnet-4-5"
    """

    def __init__(self, config: RouterConfig):
        self.config = config
        self.classifier = MessageClassifier()
        self.scorer = ModelScorer(config.capabilities)

    def route(
        self,
        message: str | MessageContext,
        prefer_free: bool = True,
    ) -> RoutingResult:
        """Route a request to a model.

        Args:
            message: Request text or a MessageContext.
            prefer_free: Pick the tier's free model when it has one.

        Returns:
            RoutingResult with tier, model selection and scores.
        """
        start = time.perf_counter()
        text = _text_of(message)

        scores = self.classifier.score_all(text, self.config.dimensions.dimensions)
        total_score = sum(scores.values())
        rule = resolve_tier(scores, total_score, self.config.tiers.thresholds)
        tier_config = self.config.tiers[rule.tier]
        selection = select_model(tier_config, prefer_free)

        return RoutingResult(
            tier=rule.tier,
            model=selection.model,
            full_model=selection.full_model,
            fallback=selection.fallback,
            full_fallback=selection.full_fallback,
            confidence=calculate_confidence(total_score),
            total_score=total_score,
            scores=MappingProxyType(scores),
            description=tier_config.description,
            matched_rule=rule.name,
            execution_time_ms=(time.perf_counter() - start) * 1000,
        )

    def score_models(
        self,
        message: str | MessageContext,
        models: list[str],
    ) -> dict[str, float]:
        """Score an arbitrary list of candidate models for a request."""
        text = _text_of(message)
        scores = self.classifier.score_all(text, self.config.dimensions.dimensions)
        total_score = sum(scores.values())

        return {
            model: self.scorer.calculate_score(model, scores, total_score, text)
            for model in models
        }

    def format_result(self, result: RoutingResult, verbose: bool = False) -> str:
        """Render a routing decision as Markdown."""
        model_line = f"**Model:** `{result.model}`"
        if verbose:
            model_line += f" (full: `{result.full_model}`)"

        lines = [
            "📊 **Routing Decision**",
            "",
            f"**Tier:** {result.tier.value}",
            model_line,
            f"**Confidence:** {result.confidence * 100:.1f}%",
        ]

        if result.fallback:
            lines.append(f"**Fallback:** `{result.fallback}`")
        lines.append(f"**Why:** {result.description}")

        if verbose:
            ranked = sorted(
                ((dim, score) for dim, score in result.scores.items() if score > 0),
                key=lambda item: item[1],
                reverse=True,
            )
            if ranked:
                lines.extend(["", "**Dimension Scores:**"])
                for dim, score in ranked:
                    lines.append(f"  • {dim}: {score:.4f}")
                lines.append(f"  • **total**: {result.total_score:.4f}")
            lines.extend(["", f"**Execution Time:** {result.execution_time_ms:.2f}ms"])

        return "\n".join(lines)


def _text_of(message: str | MessageContext) -> str:
    if isinstance(message, MessageContext):
        return message.text
    return message
