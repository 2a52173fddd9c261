"""Configuration constants for the relationship graph pipeline."""

import dataclasses
import os
from dataclasses import dataclass

# Pairwise comparison budget; the sampler keeps floor(sqrt(budget)) papers
MAX_COMPARISONS = 50000
MAX_INPUT_PAPERS = 500
EDGE_BUDGET = 200

VENUE_KEEP_RATE = 0.2
TEMPORAL_KEEP_RATE = 0.3
TEMPORAL_EDGES_PER_PAPER = 3
TEMPORAL_YEAR_WINDOW = 1
CONTENT_OVERLAP_THRESHOLD = 3

MAX_KEYWORDS_PER_PAPER = 20
MIN_KEYWORD_LENGTH = 4

CACHE_TTL_MINUTES = 60.0
CACHE_MAX_SIZE = 10000

DEFAULT_TOPIC = "research_graph_topic"

# Strength per relationship type (author/content scale with overlap)
CITATION_STRENGTH = 0.9
AUTHOR_STRENGTH_STEP = 0.3
AUTHOR_STRENGTH_MAX = 0.9
CONTENT_STRENGTH_STEP = 0.1
CONTENT_STRENGTH_MAX = 0.8
VENUE_STRENGTH = 0.4
TEMPORAL_STRENGTH = 0.3

RELATIONSHIP_TYPES = ("citation", "author", "venue", "content", "temporal")

TYPE_WEIGHTS = {
    "citation": 5,
    "author": 4,
    "content": 3,
    "venue": 2,
    "temporal": 1,
}

TYPE_COLORS = {
    "citation": "#E74C3C",
    "author": "#4A90D9",
    "content": "#2ECC71",
    "venue": "#9B59B6",
    "temporal": "#F39C12",
}

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "this", "that", "these", "those",
})

# Node payload limits for the visualization frontend
VIZ_MAX_AUTHORS = 3
VIZ_ABSTRACT_CHARS = 300

ENV_PREFIX = "SCHOLARGRAPH_"


@dataclass(frozen=True)
class BuildConfig:
    """Tunable knobs for one GraphBuilder.

    Defaults are the module-level constants above.
    """

    max_comparisons: int = MAX_COMPARISONS
    max_input_papers: int = MAX_INPUT_PAPERS
    edge_budget: int = EDGE_BUDGET
    venue_keep_rate: float = VENUE_KEEP_RATE
    temporal_keep_rate: float = TEMPORAL_KEEP_RATE
    temporal_edges_per_paper: int = TEMPORAL_EDGES_PER_PAPER
    content_overlap_threshold: int = CONTENT_OVERLAP_THRESHOLD
    max_keywords_per_paper: int = MAX_KEYWORDS_PER_PAPER
    cache_ttl_minutes: float = CACHE_TTL_MINUTES
    cache_max_size: int = CACHE_MAX_SIZE
    default_topic: str = DEFAULT_TOPIC

    def __post_init__(self):
        for name in ("venue_keep_rate", "temporal_keep_rate"):
            rate = getattr(self, name)
            if not 0.0 <= rate <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {rate}")
        for name in ("max_comparisons", "max_input_papers", "edge_budget",
                     "temporal_edges_per_paper", "content_overlap_threshold",
                     "max_keywords_per_paper", "cache_max_size"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.cache_ttl_minutes <= 0:
            raise ValueError("cache_ttl_minutes must be positive")

    def replace(self, **overrides):
        return dataclasses.replace(self, **overrides)

    @classmethod
    def from_env(cls, environ=None):
        """Build a config from SCHOLARGRAPH_* environment variables.

        e.g. SCHOLARGRAPH_EDGE_BUDGET=150, SCHOLARGRAPH_VENUE_KEEP_RATE=0.1.
        Unset variables keep their defaults.
        """
        if environ is None:
            environ = os.environ
        overrides = {}
        for field in dataclasses.fields(cls):
            raw = environ.get(ENV_PREFIX + field.name.upper())
            if raw is None or raw.strip() == "":
                continue
            default = field.default
            try:
                if isinstance(default, int):
                    value = int(raw)
                elif isinstance(default, float):
                    value = float(raw)
                else:
                    value = raw.strip()
            except ValueError:
                raise ValueError(
                    f"Invalid value for {ENV_PREFIX}{field.name.upper()}: {raw!r}"
                ) from None
            overrides[field.name] = value
        return cls(**overrides)
