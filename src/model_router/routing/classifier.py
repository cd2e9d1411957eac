"""Request classification for model routing.

Turns raw request text into a mapping of dimension name -> score.
Every dimension is a configurable set of regex detectors; the score is
the number of distinct patterns that match, capped at the dimension's
``max`` and multiplied by its ``weight``. The reserved ``length``
dimension is scored with a step function over character count instead.

All of this is local regex work - no LLM calls, no I/O.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable

logger = logging.getLogger(__name__)

LENGTH_DIMENSION = "length"
DEFAULT_LENGTH_WEIGHT = 0.08


@dataclass(frozen=True)
class Dimension:
    """A named, weighted group of regex detectors."""
    name: str
    weight: float
    max: int
    patterns: tuple[str, ...] = ()
    description: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Dimension":
        return cls(
            name=d["name"],
            weight=float(d["weight"]),
            max=int(d["max"]),
            patterns=tuple(d.get("patterns") or ()),
            description=d.get("description", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "weight": self.weight,
            "max": self.max,
            "patterns": list(self.patterns),
            "description": self.description,
        }


@dataclass(frozen=True)
class DimensionsConfig:
    """Ordered, read-only set of dimensions loaded from dimensions.json."""
    dimensions: tuple[Dimension, ...]
    version: str = "1.0.0"
    description: str = ""

    @property
    def names(self) -> list[str]:
        return [d.name for d in self.dimensions]

    def get(self, name: str) -> Dimension | None:
        for dimension in self.dimensions:
            if dimension.name == name:
                return dimension
        return None


@dataclass
class MessageFeatures:
    """Auxiliary diagnostics about a message.

    Not used for tier resolution - reported by ``route --features``.
    """
    token_count: int = 0
    has_code: bool = False
    has_math: bool = False
    is_question: bool = False
    technical_terms: int = 0
    question_marks: int = 0
    code_block_count: int = 0
    imperative_start: bool = False
    has_constraints: bool = False
    has_reference: bool = False
    has_negation: bool = False

    def to_dict(self) -> dict[str, Any]:
        return dict(self.__dict__)


# Feature detectors
CODE_MARKERS = re.compile(
    r'(```|\b(?:function|class|const|def|return|import|async|await)\b|'
    r'\.py\b|\.js\b|\.ts\b)'
)

MATH_MARKERS = re.compile(
    r'(\d+\s*[+\-*/]\s*\d+|\b(?:equation|calculate|derive|proof|theorem)\b)',
    re.IGNORECASE,
)

QUESTION_MARKERS = re.compile(r'\?|how|what|why|when|where|who', re.IGNORECASE)

IMPERATIVE_START = re.compile(
    r'^(build|create|implement|design|develop|make|write|generate)\b',
    re.IGNORECASE,
)

CONSTRAINT_MARKERS = re.compile(
    r'(\b(?:at\s+most|at\s+least|maximum|minimum|exactly)\b|\bO\([^)]+\))',
    re.IGNORECASE,
)

REFERENCE_MARKERS = re.compile(
    r'\b(the\s+docs|the\s+api|above|previous(?:ly)?|earlier|mentioned)\b',
    re.IGNORECASE,
)

NEGATION_MARKERS = re.compile(
    r"\b(don'?t|avoid|without|never|except)\b",
    re.IGNORECASE,
)

TECHNICAL_TERMS = (
    "algorithm", "kubernetes", "docker", "distributed", "architecture",
    "microservice", "database", "api", "rest", "graphql", "aws", "gcp",
    "azure", "terraform", "neural", "transformer", "model", "training",
)


def estimate_tokens(text: str) -> int:
    """Rough token estimate: ~4 characters per token."""
    return math.ceil(len(text) / 4)


class MessageClassifier:
    """Scores request text against configured dimensions.

    Stateless apart from remembering which broken patterns it has
    already warned about, so a bad config line is reported once
    rather than on every request.
    """

    def __init__(self) -> None:
        self._warned: set[str] = set()

    def score_dimension(self, text: str, dimension: Dimension) -> float:
        """Score one pattern dimension.

        Counts distinct matching patterns (case-insensitive search),
        caps the count at ``dimension.max`` and multiplies by
        ``dimension.weight``. An invalid pattern counts as a non-match.
        """
        if not dimension.patterns:
            return 0.0

        matches = 0
        for pattern in dimension.patterns:
            try:
                if re.search(pattern, text, re.IGNORECASE):
                    matches += 1
            except re.error as e:
                self._warn_invalid(dimension.name, pattern, e)

        capped = min(matches, dimension.max)
        return capped * dimension.weight

    def score_length(self, text: str, weight: float = DEFAULT_LENGTH_WEIGHT) -> float:
        """Score text length as a five-band step function."""
        char_count = len(text)

        if char_count < 50:
            return 0.0
        elif char_count < 150:
            return weight * 0.3
        elif char_count < 500:
            return weight * 0.6
        elif char_count <= 1500:
            return weight * 1.0
        else:
            return weight * 1.5

    def score_all(self, text: str, dimensions: Iterable[Dimension]) -> dict[str, float]:
        """Build the full dimension score map for a request."""
        scores: dict[str, float] = {}
        for dimension in dimensions:
            if dimension.name == LENGTH_DIMENSION:
                scores[dimension.name] = self.score_length(text, dimension.weight)
            else:
                scores[dimension.name] = self.score_dimension(text, dimension)
        return scores

    def extract_features(self, text: str) -> MessageFeatures:
        """Extract auxiliary features from message text."""
        lower = text.lower()
        return MessageFeatures(
            token_count=estimate_tokens(text),
            has_code=bool(CODE_MARKERS.search(text)),
            has_math=bool(MATH_MARKERS.search(text)),
            is_question=bool(QUESTION_MARKERS.search(text)),
            technical_terms=sum(1 for term in TECHNICAL_TERMS if term in lower),
            question_marks=text.count("?"),
            code_block_count=text.count("```") // 2,
            imperative_start=bool(IMPERATIVE_START.match(text.strip())),
            has_constraints=bool(CONSTRAINT_MARKERS.search(text)),
            has_reference=bool(REFERENCE_MARKERS.search(text)),
            has_negation=bool(NEGATION_MARKERS.search(text)),
        )

    def _warn_invalid(self, dimension: str, pattern: str, error: re.error) -> None:
        key = f"{dimension}:{pattern}"
        if key in self._warned:
            return
        self._warned.add(key)
        logger.warning(f"Invalid pattern in dimension {dimension}: {pattern!r} ({error})")


def find_invalid_patterns(dimensions: Iterable[Dimension]) -> list[tuple[str, str, str]]:
    """Return (dimension, pattern, error) for every pattern that fails to compile."""
    invalid = []
    for dimension in dimensions:
        for pattern in dimension.patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                invalid.append((dimension.name, pattern, str(e)))
    return invalid
