"""Tests for the routing core.

Tests:
1. Classifier: pattern dimensions, length bands, auxiliary features
2. Tier rules: precedence of the ordered rule table, band boundaries
3. Router: scenarios, tier-table fidelity, confidence, formatting
4. Capability scorer: sub-score policies and model ranking
"""

import math

import pytest

from model_router.config import load_router_config
from model_router.routing.classifier import Dimension, MessageClassifier
from model_router.routing.router import (
    TIER_RULES,
    ComplexityTier,
    MessageContext,
    ModelRouter,
    Thresholds,
    calculate_confidence,
    resolve_tier,
    select_model,
)
from model_router.routing.scorer import (
    CRITERIA_WEIGHTS,
    CapabilityRegistry,
    ModelScorer,
    complexity_multiplier,
)

PREMIUM_PROMPT = (
    "Design a full distributed trading platform architecture with fault "
    "tolerance, using CQRS patterns, event sourcing, and formal verification methods"
)


# ── Fixtures ──────────────────────────────────────────────────

@pytest.fixture
def classifier():
    return MessageClassifier()


@pytest.fixture
def router_config(tmp_path):
    """Bundled default tables (tmp_path has no config/ of its own)."""
    return load_router_config(tmp_path)


@pytest.fixture
def router(router_config):
    return ModelRouter(router_config)


@pytest.fixture
def scorer(router_config):
    return ModelScorer(router_config.capabilities)


@pytest.fixture
def thresholds():
    return Thresholds(
        simple_max=0.20,
        complex_min=0.35,
        premium_min=0.55,
        reasoning_trigger=0.20,
        coding_trigger=0.15,
        creative_trigger=0.10,
    )


# ═══════════════════════════════════════════════════════════════
# 1. CLASSIFIER
# ═══════════════════════════════════════════════════════════════

class TestScoreDimension:
    """Pattern dimension scoring."""

    def test_counts_distinct_matching_patterns(self, classifier):
        dim = Dimension("x", weight=0.1, max=5, patterns=("foo", "bar", "qux"))
        assert classifier.score_dimension("foo and bar", dim) == pytest.approx(0.2)

    def test_match_count_is_capped(self, classifier):
        dim = Dimension("x", weight=0.1, max=2, patterns=("a", "b", "c"))
        assert classifier.score_dimension("a b c", dim) == pytest.approx(0.2)

    def test_case_insensitive_search(self, classifier):
        dim = Dimension("x", weight=0.5, max=1, patterns=(r"\bpython\b",))
        assert classifier.score_dimension("I love PYTHON code", dim) == pytest.approx(0.5)

    def test_search_not_full_match(self, classifier):
        dim = Dimension("x", weight=0.5, max=1, patterns=("bar",))
        assert classifier.score_dimension("foobarbaz", dim) == pytest.approx(0.5)

    def test_no_patterns_scores_zero(self, classifier):
        dim = Dimension("x", weight=0.5, max=3)
        assert classifier.score_dimension("anything", dim) == 0.0

    def test_invalid_pattern_is_a_non_match(self, classifier, caplog):
        dim = Dimension("x", weight=0.1, max=3, patterns=("(unclosed", "foo"))
        with caplog.at_level("WARNING"):
            assert classifier.score_dimension("foo (unclosed", dim) == pytest.approx(0.1)
            classifier.score_dimension("foo", dim)

        warnings = [r for r in caplog.records if "Invalid pattern" in r.getMessage()]
        assert len(warnings) == 1  # reported once, not per request

    def test_more_matches_never_decrease_score(self, classifier):
        dim = Dimension("x", weight=0.07, max=3, patterns=("alpha", "beta", "gamma", "delta"))
        texts = ["", "alpha", "alpha beta", "alpha beta gamma", "alpha beta gamma delta"]
        scores = [classifier.score_dimension(t, dim) for t in texts]
        assert scores == sorted(scores)


class TestScoreLength:
    """Length band boundaries."""

    @pytest.mark.parametrize("length,factor", [
        (0, 0.0),
        (49, 0.0),
        (50, 0.3),
        (149, 0.3),
        (150, 0.6),
        (499, 0.6),
        (500, 1.0),
        (1500, 1.0),
        (1501, 1.5),
        (10_000, 1.5),
    ])
    def test_bands(self, classifier, length, factor):
        assert classifier.score_length("a" * length, 0.08) == pytest.approx(0.08 * factor)

    def test_default_weight(self, classifier):
        assert classifier.score_length("a" * 600) == pytest.approx(0.08)

    def test_score_all_dispatches_length(self, classifier):
        dims = [
            Dimension("length", weight=0.2, max=1),
            Dimension("code", weight=0.1, max=2, patterns=("def",)),
        ]
        scores = classifier.score_all("def " + "x" * 60, dims)
        assert scores == {"length": pytest.approx(0.06), "code": pytest.approx(0.1)}


class TestMessageFeatures:
    """Auxiliary feature bundle."""

    def test_feature_extraction(self, classifier):
        text = (
            "Write a function that returns at most 3 items from the api "
            "mentioned above, but don't sort them?"
        )
        f = classifier.extract_features(text)

        assert f.has_code
        assert f.imperative_start
        assert f.has_constraints
        assert f.has_reference
        assert f.has_negation
        assert f.is_question
        assert f.question_marks == 1
        assert f.technical_terms >= 1
        assert f.token_count == math.ceil(len(text) / 4)

    def test_plain_greeting_has_no_signals(self, classifier):
        f = classifier.extract_features("hello there")
        assert not f.has_code
        assert not f.has_math
        assert not f.imperative_start
        assert f.code_block_count == 0

    def test_code_blocks_and_math(self, classifier):
        f = classifier.extract_features("Solve 3 + 4\n```py\nx = 1\n```")
        assert f.code_block_count == 1
        assert f.has_math


# ═══════════════════════════════════════════════════════════════
# 2. TIER RULES
# ═══════════════════════════════════════════════════════════════

class TestTierRules:
    """Ordered, first-match-wins tier resolution."""

    def test_rule_order(self):
        assert [r.name for r in TIER_RULES] == [
            "reasoning-trigger",
            "coding-trigger",
            "creative-trigger",
            "multistep-trigger",
            "simple-signal",
            "below-simple-max",
            "premium-band",
            "complex-band",
            "default",
        ]

    def test_reasoning_beats_code_and_creative(self, thresholds):
        scores = {"reasoning": 0.2, "code": 0.9, "creative": 0.9}
        assert resolve_tier(scores, 2.0, thresholds).tier == ComplexityTier.REASONING

    def test_code_beats_creative(self, thresholds):
        scores = {"code": 0.16, "creative": 0.3}
        assert resolve_tier(scores, 0.46, thresholds).tier == ComplexityTier.CODING

    def test_creative_trigger(self, thresholds):
        assert resolve_tier({"creative": 0.1}, 0.1, thresholds).tier == ComplexityTier.CREATIVE

    def test_multistep_beats_simple_bands(self, thresholds):
        rule = resolve_tier({"multistep": 0.1}, 0.1, thresholds)
        assert rule.name == "multistep-trigger"
        assert rule.tier == ComplexityTier.COMPLEX

    def test_simple_signal_protects_low_totals(self, thresholds):
        # Above SIMPLE_MAX but still SIMPLE thanks to the simple dimension
        rule = resolve_tier({"simple": 0.1, "technical": 0.15}, 0.25, thresholds)
        assert rule.name == "simple-signal"
        assert rule.tier == ComplexityTier.SIMPLE

    def test_simple_signal_needs_total_below_030(self, thresholds):
        rule = resolve_tier({"simple": 0.1, "technical": 0.3}, 0.4, thresholds)
        assert rule.name == "complex-band"

    def test_below_simple_max(self, thresholds):
        rule = resolve_tier({}, 0.1, thresholds)
        assert rule.name == "below-simple-max"
        assert rule.tier == ComplexityTier.SIMPLE

    def test_simple_max_is_exclusive(self, thresholds):
        # Between SIMPLE_MAX and COMPLEX_MIN nothing matches but the default
        rule = resolve_tier({}, 0.20, thresholds)
        assert rule.name == "default"
        assert rule.tier == ComplexityTier.COMPLEX

    def test_gap_between_bands_falls_back_to_complex(self, thresholds):
        rule = resolve_tier({}, 0.3, thresholds)
        assert rule.name == "default"
        assert rule.tier == ComplexityTier.COMPLEX

    def test_premium_min_is_inclusive(self, thresholds):
        assert resolve_tier({}, 0.55, thresholds).tier == ComplexityTier.PREMIUM

    def test_complex_band(self, thresholds):
        rule = resolve_tier({}, 0.4, thresholds)
        assert rule.name == "complex-band"

    def test_missing_dimension_never_triggers(self):
        zero = Thresholds(
            simple_max=0.2, complex_min=0.35, premium_min=0.55,
            reasoning_trigger=0.0, coding_trigger=0.0, creative_trigger=0.0,
        )
        assert resolve_tier({}, 0.1, zero).name == "below-simple-max"

    def test_multistep_trigger_defaults(self):
        t = Thresholds.from_dict({
            "SIMPLE_MAX": 0.2, "COMPLEX_MIN": 0.35, "PREMIUM_MIN": 0.55,
            "REASONING_TRIGGER": 0.2, "CODING_TRIGGER": 0.15, "CREATIVE_TRIGGER": 0.1,
        })
        assert t.multistep_trigger == pytest.approx(0.10)


# ═══════════════════════════════════════════════════════════════
# 3. ROUTER
# ═══════════════════════════════════════════════════════════════

class TestRouterScenarios:
    """End-to-end routing with the bundled configuration."""

    def test_greeting_is_simple_and_free(self, router):
        result = router.route("Hello, how are you?", prefer_free=True)

        assert result.tier == ComplexityTier.SIMPLE
        assert result.model == "qwen3-next-80b-a3b-instruct:free"
        assert result.full_model == "openrouter/qwen/qwen3-next-80b-a3b-instruct:free"
        assert result.fallback == "claude-sonnet-4-5"

    def test_python_function_is_coding(self, router):
        result = router.route("Write a Python function to sort an array", prefer_free=True)

        assert result.tier == ComplexityTier.CODING
        assert result.scores["code"] >= 0.15
        assert result.model == "qwen3-coder:free"
        assert result.fallback
        assert result.matched_rule == "coding-trigger"

    def test_architecture_request_is_premium(self, router):
        result = router.route(PREMIUM_PROMPT, prefer_free=True)

        assert result.total_score >= 0.55
        assert result.tier == ComplexityTier.PREMIUM
        assert result.model == "claude-opus-4-5"
        assert result.full_model == "anthropic/claude-opus-4-5"
        assert result.fallback is None
        assert result.full_fallback is None

    def test_reasoning_wins_over_code_and_creative(self, router):
        result = router.route(
            "Prove this theorem step by step, then write a Python function "
            "with a class that prints a poem"
        )
        assert result.scores["code"] >= 0.15
        assert result.scores["creative"] >= 0.10
        assert result.tier == ComplexityTier.REASONING

    def test_creative_request(self, router):
        result = router.route("Write me a poem about the sea")
        assert result.tier == ComplexityTier.CREATIVE
        assert result.model == "trinity-large-preview:free"

    def test_multistep_request(self, router):
        result = router.route("First gather the requirements, then draft a roadmap for the team")
        assert result.tier == ComplexityTier.COMPLEX
        assert result.matched_rule == "multistep-trigger"

    def test_paid_preference(self, router):
        result = router.route("Write a Python function to sort an array", prefer_free=False)
        assert result.model == "claude-sonnet-4-5"
        assert result.fallback is None

    def test_accepts_message_context(self, router):
        result = router.route(MessageContext(text="Hello, how are you?", channel="telegram"))
        assert result.tier == ComplexityTier.SIMPLE


class TestRouterProperties:
    """Invariants that hold for any input."""

    @pytest.mark.parametrize("text", [
        "",
        " ",
        "?",
        "ok",
        "¿Cómo estás? 你好 🙂",
        "x" * 5000,
        PREMIUM_PROMPT * 20,
        "((( [[[ unbalanced",
    ])
    def test_always_valid_result(self, router, text):
        result = router.route(text)
        assert result.tier in set(ComplexityTier)
        assert 0.0 <= result.confidence <= 1.0

    def test_scores_cover_every_dimension(self, router, router_config):
        result = router.route("anything at all")
        assert list(result.scores) == router_config.dimensions.names

    def test_scores_are_read_only(self, router):
        result = router.route("hello")
        with pytest.raises(TypeError):
            result.scores["code"] = 1.0

    def test_idempotent(self, router):
        a = router.route(PREMIUM_PROMPT)
        b = router.route(PREMIUM_PROMPT)

        assert a.tier == b.tier
        assert a.model == b.model
        assert a.fallback == b.fallback
        assert dict(a.scores) == dict(b.scores)
        assert a.confidence == b.confidence

    def test_more_matches_never_decrease_total(self, router):
        base = router.route("Write a function")
        more = router.route("Write a Python function to sort an array")
        assert more.scores["code"] >= base.scores["code"]
        assert more.total_score >= base.total_score

    def test_tier_table_fidelity(self, router_config):
        for tier, tier_config in router_config.tiers.tiers.items():
            free = select_model(tier_config, prefer_free=True)
            paid = select_model(tier_config, prefer_free=False)

            if tier_config.free:
                assert free.model == tier_config.free
                assert free.fallback == tier_config.paid
            else:
                assert tier == ComplexityTier.PREMIUM
                assert free.model == tier_config.paid
                assert free.fallback is None

            assert paid.model == tier_config.paid
            assert paid.fallback is None

    def test_to_dict(self, router):
        d = router.route("Hello, how are you?").to_dict()
        assert d["tier"] == "SIMPLE"
        assert d["fullModel"].startswith("openrouter/")
        assert isinstance(d["scores"], dict)


class TestConfidence:
    """Sigmoid calibration."""

    def test_midpoint_is_half(self):
        assert calculate_confidence(0.3) == pytest.approx(0.5)

    def test_known_values(self):
        assert calculate_confidence(0.0) == pytest.approx(1 / (1 + math.exp(3)))
        assert calculate_confidence(0.6) == pytest.approx(1 / (1 + math.exp(-3)))

    def test_monotonic_and_bounded(self):
        values = [calculate_confidence(x / 10) for x in range(-1000, 1000, 7)]
        assert values == sorted(values)
        assert all(0.0 <= v <= 1.0 for v in values)

    def test_extreme_totals_do_not_overflow(self):
        assert calculate_confidence(-1e6) == pytest.approx(0.0)
        assert calculate_confidence(1e6) == pytest.approx(1.0)


class TestFormatResult:
    """Human-readable rendering."""

    def test_basic_fields(self, router):
        text = router.format_result(router.route("Hello, how are you?"))

        assert "**Tier:** SIMPLE" in text
        assert "`qwen3-next-80b-a3b-instruct:free`" in text
        assert "**Fallback:** `claude-sonnet-4-5`" in text
        assert "**Confidence:** 11.9%" in text
        assert "**Why:**" in text
        assert "Dimension Scores" not in text

    def test_verbose_adds_breakdown(self, router):
        text = router.format_result(router.route(PREMIUM_PROMPT), verbose=True)

        assert "(full: `anthropic/claude-opus-4-5`)" in text
        assert "**Dimension Scores:**" in text
        assert "  • expertise: 0.4000" in text
        assert "**total**" in text
        assert "**Execution Time:**" in text
        assert "Fallback" not in text
        # Highest scoring dimension listed first
        lines = [l for l in text.splitlines() if l.startswith("  • ")]
        assert lines[0].startswith("  • expertise")


# ═══════════════════════════════════════════════════════════════
# 4. CAPABILITY SCORER
# ═══════════════════════════════════════════════════════════════

class TestCapabilityRegistry:
    """Data-driven capability lookup."""

    def test_coder_model(self, router_config):
        cap = router_config.capabilities.lookup("openrouter/qwen/qwen3-coder:free")

        assert cap.is_free
        assert {"code", "multilingual", "aggregator"} <= cap.specialties
        assert cap.context_window == 128_000
        assert cap.quality == pytest.approx(0.7)
        assert cap.speed == "medium"

    def test_thinking_model(self, router_config):
        cap = router_config.capabilities.lookup("google-antigravity/claude-opus-4-5-thinking")

        assert not cap.is_free
        assert cap.speed == "slow"
        assert cap.quality == pytest.approx(0.95)
        assert {"reasoning", "deep-reasoning", "experimental", "premium-reliability"} <= cap.specialties

    def test_unknown_model_gets_defaults(self, router_config):
        cap = router_config.capabilities.lookup("acme/mystery-7b")

        assert cap.context_window == 32_000
        assert cap.speed == "medium"
        assert cap.quality == pytest.approx(0.5)
        assert cap.specialties == frozenset()

    def test_custom_table(self):
        registry = CapabilityRegistry.from_dict({
            "quality": {"default": 0.4, "rules": [{"match": "Star", "value": 0.8}]},
            "specialties": {"code": ["starcoder"]},
        })
        cap = registry.lookup("bigcode/StarCoder2")

        assert cap.quality == pytest.approx(0.8)
        assert cap.has("code")
        assert cap.context_window == 32_768


class TestModelScorer:
    """Fourteen-criteria suitability score."""

    def test_weights_sum_to_one(self):
        assert sum(CRITERIA_WEIGHTS.values()) == pytest.approx(1.0)
        assert len(CRITERIA_WEIGHTS) == 14

    @pytest.mark.parametrize("total,expected", [
        (0.0, 1.0), (0.149, 1.0), (0.15, 0.8), (0.349, 0.8),
        (0.35, 0.5), (0.549, 0.5), (0.55, 0.0), (3.0, 0.0),
    ])
    def test_complexity_multiplier(self, total, expected):
        assert complexity_multiplier(total) == expected

    def test_cost_free_vs_paid(self, scorer):
        free = scorer.breakdown("openrouter/qwen/qwen3-coder:free", {}, 0.2, "x")
        paid = scorer.breakdown("anthropic/claude-sonnet-4-5", {}, 0.2, "x")
        assert free["cost"] == pytest.approx(0.8)
        assert paid["cost"] == pytest.approx(0.1)

        # Paid models gain ground as complexity rises
        hard_free = scorer.breakdown("openrouter/qwen/qwen3-coder:free", {}, 0.9, "x")
        hard_paid = scorer.breakdown("anthropic/claude-sonnet-4-5", {}, 0.9, "x")
        assert hard_free["cost"] == 0.0
        assert hard_paid["cost"] == pytest.approx(0.5)

    def test_suitability(self, scorer):
        code = {"code": 0.24}
        assert scorer.breakdown("qwen3-coder:free", code, 0.24, "x")["suitability"] == 1.0
        assert scorer.breakdown("qwen3-coder:free", {}, 0.0, "x")["suitability"] == 0.5
        assert scorer.breakdown("deepseek-r1t2-chimera:free", {"reasoning": 0.2}, 0.2, "x")["suitability"] == 1.0
        assert scorer.breakdown("trinity-large-preview:free", {"creative": 0.1}, 0.1, "x")["suitability"] == 1.0
        assert scorer.breakdown("anthropic/claude-sonnet-4-5", code, 0.24, "x")["suitability"] == 0.7
        assert scorer.breakdown("acme/mystery-7b", code, 0.24, "x")["suitability"] == 0.5

    def test_context_fit(self, scorer):
        model = "acme/mystery-7b"  # 32k default window
        assert scorer.breakdown(model, {}, 0.0, "short")["context"] == 1.0
        assert scorer.breakdown(model, {}, 0.0, "a" * (4 * 17_000))["context"] == 0.5
        assert scorer.breakdown(model, {}, 0.0, "a" * (4 * 26_000))["context"] == 0.0

    def test_quality_for_premium_requests(self, scorer):
        assert scorer.breakdown("anthropic/claude-opus-4-5", {}, 0.6, "x")["quality"] == 1.0
        assert scorer.breakdown("qwen3-coder:free", {}, 0.6, "x")["quality"] == 0.3
        assert scorer.breakdown("qwen3-coder:free", {}, 0.2, "x")["quality"] == 1.0
        assert scorer.breakdown("acme/mystery-7b", {}, 0.2, "x")["quality"] == 0.7

    def test_multilingual(self, scorer):
        text = "¿Cómo estás?"
        assert scorer.breakdown("openrouter/qwen/qwen3-coder:free", {}, 0.0, text)["multilingual"] == 1.0
        assert scorer.breakdown("anthropic/claude-sonnet-4-5", {}, 0.0, text)["multilingual"] == 0.7
        assert scorer.breakdown("anthropic/claude-sonnet-4-5", {}, 0.0, "hi")["multilingual"] == 1.0

    def test_reliability_and_constants(self, scorer):
        free = scorer.breakdown("openrouter/qwen/qwen3-coder:free", {}, 0.0, "x")
        claude = scorer.breakdown("anthropic/claude-opus-4-5", {}, 0.0, "x")
        other = scorer.breakdown("acme/mystery-7b", {}, 0.0, "x")

        assert free["reliability"] == 0.7
        assert claude["reliability"] == 1.0
        assert other["reliability"] == 0.8
        assert free["safety"] == claude["safety"] == 1.0
        assert free["provider_diversity"] == 1.0
        assert claude["provider_diversity"] == 0.7

    def test_speed(self, scorer):
        easy, hard = 0.1, 0.2
        # Haiku is the fast class; everything else bundled is medium or slow
        assert scorer.breakdown("anthropic/claude-haiku-4-5", {}, easy, "x")["speed"] == 1.0
        assert scorer.breakdown("openrouter/qwen/qwen3-coder:free", {}, easy, "x")["speed"] == 0.5
        assert scorer.breakdown("deepseek-r1t2-chimera:free", {}, easy, "x")["speed"] == 0.5
        assert scorer.breakdown("anthropic/claude-haiku-4-5", {}, hard, "x")["speed"] == 0.7
        assert scorer.breakdown("deepseek-r1t2-chimera:free", {}, hard, "x")["speed"] == 0.7

    def test_code_generation(self, scorer):
        code = {"code": 0.16}
        assert scorer.breakdown("qwen3-coder:free", {}, 0.0, "x")["code_generation"] == 0.5
        assert scorer.breakdown("qwen3-coder:free", code, 0.16, "x")["code_generation"] == 1.0
        assert scorer.breakdown("anthropic/claude-sonnet-4-5", code, 0.16, "x")["code_generation"] == 0.8
        assert scorer.breakdown("openai/gpt-4o", code, 0.16, "x")["code_generation"] == 0.8
        assert scorer.breakdown("acme/mystery-7b", code, 0.16, "x")["code_generation"] == 0.5

    def test_reasoning_depth(self, scorer):
        reasoning = {"reasoning": 0.2}
        assert scorer.breakdown("deepseek-r1t2-chimera:free", {}, 0.0, "x")["reasoning_depth"] == 0.5
        assert scorer.breakdown("deepseek-r1t2-chimera:free", reasoning, 0.2, "x")["reasoning_depth"] == 1.0
        assert scorer.breakdown("anthropic/claude-opus-4-5", reasoning, 0.2, "x")["reasoning_depth"] == 0.9
        assert scorer.breakdown("anthropic/claude-sonnet-4-5", reasoning, 0.2, "x")["reasoning_depth"] == 0.6

    def test_creativity(self, scorer):
        creative = {"creative": 0.1}
        assert scorer.breakdown("trinity-large-preview:free", {}, 0.0, "x")["creativity"] == 0.5
        assert scorer.breakdown("trinity-large-preview:free", creative, 0.1, "x")["creativity"] == 1.0
        assert scorer.breakdown("anthropic/claude-sonnet-4-5", creative, 0.1, "x")["creativity"] == 1.0
        assert scorer.breakdown("qwen3-coder:free", creative, 0.1, "x")["creativity"] == 0.7

    def test_latency(self, scorer):
        assert scorer.breakdown("anthropic/claude-haiku-4-5", {}, 0.5, "x")["latency"] == 1.0
        assert scorer.breakdown("anthropic/claude-sonnet-4-5", {}, 0.5, "x")["latency"] == 0.7
        assert scorer.breakdown("google-antigravity/claude-opus-4-5-thinking", {}, 0.5, "x")["latency"] == 0.7

    def test_experimental(self, scorer):
        assert scorer.breakdown("google-antigravity/claude-opus-4-5-thinking", {}, 0.0, "x")["experimental"] == 1.0
        assert scorer.breakdown("trinity-large-preview:free", {}, 0.0, "x")["experimental"] == 1.0
        assert scorer.breakdown("anthropic/claude-opus-4-5", {}, 0.0, "x")["experimental"] == 0.5

    def test_lookup_ignores_case(self, router_config):
        registry = router_config.capabilities
        upper = registry.lookup("Anthropic/Claude-Opus-4-5")
        lower = registry.lookup("anthropic/claude-opus-4-5")

        assert upper.model_id == "Anthropic/Claude-Opus-4-5"
        assert upper.quality == lower.quality == pytest.approx(0.95)
        assert upper.specialties == lower.specialties
        assert upper.context_window == lower.context_window

    def test_score_in_unit_interval(self, scorer):
        models = [
            "openrouter/qwen/qwen3-coder:free",
            "google-antigravity/claude-opus-4-5-thinking",
            "acme/mystery-7b",
            "",
        ]
        for model in models:
            for total in (0.0, 0.3, 0.6, 5.0):
                s = scorer.calculate_score(model, {"code": 0.1, "reasoning": 0.1}, total, "text")
                assert 0.0 <= s <= 1.0


class TestScoreModels:
    """Router model-comparison mode."""

    def test_coder_beats_generic_paid_on_easy_coding(self, router):
        prompt = "Write a Python function to sort an array"
        scores = router.score_models(prompt, [
            "openrouter/qwen/qwen3-coder:free",
            "anthropic/claude-sonnet-4-5",
            "mistral/mistral-large",
        ])

        assert set(scores) == {
            "openrouter/qwen/qwen3-coder:free",
            "anthropic/claude-sonnet-4-5",
            "mistral/mistral-large",
        }
        assert scores["openrouter/qwen/qwen3-coder:free"] > scores["anthropic/claude-sonnet-4-5"]
        assert scores["openrouter/qwen/qwen3-coder:free"] > scores["mistral/mistral-large"]

    def test_empty_candidate_list(self, router):
        assert router.score_models("hello", []) == {}
