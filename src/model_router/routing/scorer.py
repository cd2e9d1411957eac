"""Model capability scoring.

Rates how well a candidate model suits a request. Fourteen sub-scores,
each in [0, 1], are blended with fixed weights that sum to 1.0:

    cost 0.25, task suitability 0.20, context fit 0.15, speed 0.10,
    quality 0.10, reliability 0.05, multilingual 0.05, code 0.03,
    reasoning 0.03, creativity 0.02, safety 0.01, latency 0.005,
    provider diversity 0.0025, experimental 0.0025

What a model *is* (context window, speed class, quality, specialties)
comes from a CapabilityRegistry - an ordered substring table loaded
from capabilities.json - rather than from string checks scattered
through the scoring code.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from .classifier import estimate_tokens

CRITERIA_WEIGHTS: dict[str, float] = {
    "cost": 0.25,
    "suitability": 0.20,
    "context": 0.15,
    "speed": 0.10,
    "quality": 0.10,
    "reliability": 0.05,
    "multilingual": 0.05,
    "code_generation": 0.03,
    "reasoning_depth": 0.03,
    "creativity": 0.02,
    "safety": 0.01,
    "latency": 0.005,
    "provider_diversity": 0.0025,
    "experimental": 0.0025,
}

NON_ASCII = re.compile(r'[^\x00-\x7F]')


@dataclass(frozen=True)
class ModelCapability:
    """Resolved capability record for one model identifier."""
    model_id: str
    context_window: int
    speed: str  # "fast", "medium", "slow"
    quality: float
    specialties: frozenset[str] = field(default_factory=frozenset)

    def has(self, tag: str) -> bool:
        return tag in self.specialties

    @property
    def is_free(self) -> bool:
        return "free" in self.specialties


@dataclass(frozen=True)
class CapabilityRegistry:
    """Data-driven lookup from model identifier to ModelCapability.

    ``context_window``, ``speed`` and ``quality`` are ordered
    (substring, value) tables - the first substring found in the
    identifier wins. ``specialties`` maps a tag to the substrings that
    grant it. Matching is case-insensitive.
    """
    context_window: tuple[tuple[str, int], ...]
    speed: tuple[tuple[str, str], ...]
    quality: tuple[tuple[str, float], ...]
    specialties: tuple[tuple[str, tuple[str, ...]], ...]
    default_context_window: int = 32_768
    default_speed: str = "medium"
    default_quality: float = 0.6

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "CapabilityRegistry":
        def table(key: str, cast) -> tuple:
            section = d.get(key) or {}
            return tuple(
                (str(entry["match"]).lower(), cast(entry["value"]))
                for entry in section.get("rules", [])
            )

        return cls(
            context_window=table("context_window", int),
            speed=table("speed", str),
            quality=table("quality", float),
            specialties=tuple(
                (tag, tuple(s.lower() for s in substrings))
                for tag, substrings in (d.get("specialties") or {}).items()
            ),
            default_context_window=int(
                (d.get("context_window") or {}).get("default", 32_768)),
            default_speed=str((d.get("speed") or {}).get("default", "medium")),
            default_quality=float(
                (d.get("quality") or {}).get("default", 0.6)),
        )

    def lookup(self, model_id: str) -> ModelCapability:
        name = model_id.lower()
        return ModelCapability(
            model_id=model_id,
            context_window=_first_match(
                name, self.context_window, self.default_context_window),
            speed=_first_match(name, self.speed, self.default_speed),
            quality=_first_match(name, self.quality, self.default_quality),
            specialties=frozenset(
                tag for tag, substrings in self.specialties
                if any(s in name for s in substrings)
            ),
        )


def _first_match(name: str, rules: tuple, default):
    for substring, value in rules:
        if substring in name:
            return value
    return default


def complexity_multiplier(total_score: float) -> float:
    """How much a free model's cost advantage still matters."""
    if total_score < 0.15:
        return 1.0
    if total_score < 0.35:
        return 0.8
    if total_score < 0.55:
        return 0.5
    return 0.0


class ModelScorer:
    """Scores candidate models against a request.

    Usage:
        scorer = ModelScorer(registry)
        score = scorer.calculate_score(
            "openrouter/qwen/qwen3-coder:free", dimension_scores, 0.24, text)
    """

    def __init__(self, registry: CapabilityRegistry):
        self.registry = registry

    def calculate_score(
        self,
        model: str,
        dimension_scores: Mapping[str, float],
        total_score: float,
        message: str,
    ) -> float:
        """Blend the fourteen sub-scores into one suitability score."""
        breakdown = self.breakdown(model, dimension_scores, total_score, message)
        return sum(breakdown[k] * CRITERIA_WEIGHTS[k] for k in CRITERIA_WEIGHTS)

    def breakdown(
        self,
        model: str,
        dimension_scores: Mapping[str, float],
        total_score: float,
        message: str,
    ) -> dict[str, float]:
        """Raw (unweighted) sub-scores for one model."""
        cap = self.registry.lookup(model)
        return {
            "cost": self._score_cost(cap, total_score),
            "suitability": self._score_suitability(cap, dimension_scores),
            "context": self._score_context(cap, message),
            "speed": self._score_speed(cap, total_score),
            "quality": self._score_quality(cap, total_score),
            "reliability": self._score_reliability(cap),
            "multilingual": self._score_multilingual(cap, message),
            "code_generation": self._score_code_gen(cap, dimension_scores),
            "reasoning_depth": self._score_reasoning(cap, dimension_scores),
            "creativity": self._score_creativity(cap, dimension_scores),
            "safety": self._score_safety(),
            "latency": self._score_latency(cap),
            "provider_diversity": self._score_provider_diversity(cap),
            "experimental": self._score_experimental(cap),
        }

    def _score_cost(self, cap: ModelCapability, total_score: float) -> float:
        multiplier = complexity_multiplier(total_score)
        if cap.is_free:
            return multiplier
        return (1.0 - multiplier) * 0.5

    def _score_suitability(self, cap: ModelCapability, scores: Mapping[str, float]) -> float:
        if cap.has("code") and scores.get("code", 0) > 0:
            return 1.0
        if cap.has("reasoning") and scores.get("reasoning", 0) > 0:
            return 1.0
        if cap.has("creative") and scores.get("creative", 0) > 0:
            return 1.0
        if cap.has("general"):
            return 0.7
        return 0.5

    def _score_context(self, cap: ModelCapability, message: str) -> float:
        estimated = estimate_tokens(message)
        if estimated > cap.context_window * 0.8:
            return 0.0
        if estimated > cap.context_window * 0.5:
            return 0.5
        return 1.0

    def _score_speed(self, cap: ModelCapability, total_score: float) -> float:
        if total_score < 0.15:
            return 1.0 if cap.speed == "fast" else 0.5
        return 0.7

    def _score_quality(self, cap: ModelCapability, total_score: float) -> float:
        # Premium-band requests must not land on a weak model
        if total_score >= 0.55:
            return 1.0 if cap.quality >= 0.9 else 0.3
        return 1.0 if cap.quality >= 0.6 else 0.7

    def _score_reliability(self, cap: ModelCapability) -> float:
        if cap.is_free:
            return 0.7
        if cap.has("premium-reliability"):
            return 1.0
        return 0.8

    def _score_multilingual(self, cap: ModelCapability, message: str) -> float:
        if not NON_ASCII.search(message):
            return 1.0
        return 1.0 if cap.has("multilingual") else 0.7

    def _score_code_gen(self, cap: ModelCapability, scores: Mapping[str, float]) -> float:
        if not scores.get("code", 0):
            return 0.5
        if cap.has("code"):
            return 1.0
        if cap.has("code-capable"):
            return 0.8
        return 0.5

    def _score_reasoning(self, cap: ModelCapability, scores: Mapping[str, float]) -> float:
        if not scores.get("reasoning", 0):
            return 0.5
        if cap.has("reasoning"):
            return 1.0
        if cap.has("deep-reasoning"):
            return 0.9
        return 0.6

    def _score_creativity(self, cap: ModelCapability, scores: Mapping[str, float]) -> float:
        if not scores.get("creative", 0):
            return 0.5
        if cap.has("creative") or cap.has("prose"):
            return 1.0
        return 0.7

    def _score_safety(self) -> float:
        # Placeholder until there is a real content policy to evaluate
        return 1.0

    def _score_latency(self, cap: ModelCapability) -> float:
        return 1.0 if cap.speed == "fast" else 0.7

    def _score_provider_diversity(self, cap: ModelCapability) -> float:
        return 1.0 if cap.has("aggregator") else 0.7

    def _score_experimental(self, cap: ModelCapability) -> float:
        return 1.0 if cap.has("experimental") else 0.5
