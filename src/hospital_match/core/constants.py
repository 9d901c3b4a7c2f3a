"""Central constants shared across the hospital matching stack."""

from typing import Final

# Payload keys stored on every hospital point.
K_NAME: Final[str] = "name"
K_ADDRESS: Final[str] = "address"
K_CITY: Final[str] = "city"
K_CITY_EXACT: Final[str] = "city_exact"
K_UNIQUE_KEY: Final[str] = "unique_key"

# Match sources.
SOURCE_SEMANTIC: Final[str] = "semantic"
SOURCE_FUZZY: Final[str] = "fuzzy"

# Scoring weights. Empirically tuned; keep in sync with the confidence bands.
NAME_WEIGHT: Final[float] = 0.4
LOCATION_WEIGHT: Final[float] = 0.35
ADDRESS_WEIGHT: Final[float] = 0.15
OVERALL_NAME_WEIGHT: Final[float] = 0.1

KEY_TERM_BONUS: Final[float] = 0.2
KEY_TERM_MIN_LENGTH: Final[int] = 4

# Confidence bands over the total score.
CONFIRMED_THRESHOLD: Final[float] = 0.7
TENTATIVE_THRESHOLD: Final[float] = 0.4
SUGGESTION_THRESHOLD: Final[float] = 0.25

# Retrieval sizing.
CONFIRM_TOP_K: Final[int] = 15
FUZZY_LIMIT: Final[int] = 20
CITY_EXACT_LIMIT: Final[int] = 20
MAX_CONFIRMATIONS: Final[int] = 3
DEFAULT_SEARCH_LIMIT: Final[int] = 3

# Index-side score thresholds, per call site.
HYBRID_SCORE_THRESHOLD: Final[float] = 0.1
VECTOR_SCORE_THRESHOLD: Final[float] = 0.3

# Address scoring ignores these query tokens.
ADDRESS_STOPWORDS: Final[frozenset[str]] = frozenset(
    {"hospital", "medical", "center", "clinic", "the", "and", "of", "in", "at", "on"}
)
