"""
Configuration for the recall core.
Values are read from the environment with conservative defaults.
"""

from dataclasses import dataclass
import os

# Embedding configuration
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "hash")  # hash|sentence_transformers|openai
EMBED_DIM = int(os.getenv("EMBED_DIM", "1536"))
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "")
EMBED_API_KEY = os.getenv("EMBED_API_KEY")
EMBED_BASE_URL = os.getenv("EMBED_BASE_URL", "https://api.openai.com/v1/embeddings")
EMBED_MAX_CHARS = int(os.getenv("EMBED_MAX_CHARS", "8000"))
EMBED_TIMEOUT_SEC = int(os.getenv("EMBED_TIMEOUT_SEC", "30"))

# Index behaviour
STORE_BATCH_SIZE = 5
SNAPSHOT_CONTENT_CHARS = 500

# Intelligence configuration
REALTIME_PROCESSING_ENABLED = os.getenv("REALTIME_PROCESSING_ENABLED", "true").lower() == "true"
AUTO_REORGANIZATION_ENABLED = os.getenv("AUTO_REORGANIZATION_ENABLED", "false").lower() == "true"
ANALYSIS_DEPTH = os.getenv("ANALYSIS_DEPTH", "medium")  # shallow|medium|deep
RECOMMENDATION_THRESHOLD = float(os.getenv("RECOMMENDATION_THRESHOLD", "0.6"))
MAX_RECOMMENDATIONS = int(os.getenv("MAX_RECOMMENDATIONS", "10"))
LEARNING_ENABLED = os.getenv("LEARNING_ENABLED", "true").lower() == "true"

# Version string
ALGORITHM_VERSION = "1.0.0"

DEFAULT_MODEL_NAMES = {
    "sentence_transformers": "all-mpnet-base-v2",
    "openai": "text-embedding-ada-002",
}


def get_embedding_source():
    """Get the configured remote embedding source. Returns None for local hashing."""
    provider = os.getenv("EMBED_PROVIDER", EMBED_PROVIDER).lower()
    model_name = os.getenv("EMBED_MODEL_NAME", EMBED_MODEL_NAME) or DEFAULT_MODEL_NAMES.get(provider, "")

    if provider == "sentence_transformers":
        from recall.vector.embeddings import SentenceTransformerEmbedding
        return SentenceTransformerEmbedding(model_name)
    elif provider == "openai":
        from recall.vector.embeddings import OpenAIEmbeddingSource
        return OpenAIEmbeddingSource(
            api_key=os.getenv("EMBED_API_KEY", EMBED_API_KEY),
            model_name=model_name,
            base_url=os.getenv("EMBED_BASE_URL", EMBED_BASE_URL),
            timeout=get_embed_timeout(),
        )
    else:
        return None


def get_embed_dim() -> int:
    """Get the fixed index dimension."""
    return int(os.getenv("EMBED_DIM", str(EMBED_DIM)))


def get_embed_max_chars() -> int:
    return int(os.getenv("EMBED_MAX_CHARS", str(EMBED_MAX_CHARS)))


def get_embed_timeout() -> int:
    return int(os.getenv("EMBED_TIMEOUT_SEC", str(EMBED_TIMEOUT_SEC)))


def is_realtime_processing_enabled():
    return os.getenv("REALTIME_PROCESSING_ENABLED", str(REALTIME_PROCESSING_ENABLED)).lower() == "true"


def is_auto_reorganization_enabled():
    return os.getenv("AUTO_REORGANIZATION_ENABLED", str(AUTO_REORGANIZATION_ENABLED)).lower() == "true"


def get_analysis_depth():
    """Get analysis depth (shallow|medium|deep)."""
    return os.getenv("ANALYSIS_DEPTH", ANALYSIS_DEPTH)


def get_recommendation_threshold() -> float:
    return float(os.getenv("RECOMMENDATION_THRESHOLD", str(RECOMMENDATION_THRESHOLD)))


def get_max_recommendations() -> int:
    return int(os.getenv("MAX_RECOMMENDATIONS", str(MAX_RECOMMENDATIONS)))


def is_learning_enabled():
    """Check if interaction recording is honoured."""
    return os.getenv("LEARNING_ENABLED", str(LEARNING_ENABLED)).lower() == "true"


def validate_config():
    """Validate configuration and return any issues."""
    issues = []

    provider = os.getenv("EMBED_PROVIDER", EMBED_PROVIDER).lower()
    if provider not in ["hash", "sentence_transformers", "openai"]:
        issues.append(f"EMBED_PROVIDER must be hash, sentence_transformers or openai, got '{provider}'")

    if provider == "openai" and not os.getenv("EMBED_API_KEY", EMBED_API_KEY):
        issues.append("EMBED_PROVIDER=openai requires EMBED_API_KEY (local hashing will be used)")

    try:
        if get_embed_dim() <= 0:
            issues.append("EMBED_DIM must be positive")
    except ValueError:
        issues.append("EMBED_DIM must be an integer")

    if get_analysis_depth() not in ["shallow", "medium", "deep"]:
        issues.append(f"ANALYSIS_DEPTH must be shallow, medium or deep, got '{get_analysis_depth()}'")

    try:
        threshold = get_recommendation_threshold()
        if not -1.0 <= threshold <= 1.0:
            issues.append("RECOMMENDATION_THRESHOLD must be between -1 and 1")
    except ValueError:
        issues.append("RECOMMENDATION_THRESHOLD must be a number")

    try:
        if get_max_recommendations() <= 0:
            issues.append("MAX_RECOMMENDATIONS must be positive")
    except ValueError:
        issues.append("MAX_RECOMMENDATIONS must be an integer")

    if is_auto_reorganization_enabled():
        issues.append("AUTO_REORGANIZATION_ENABLED is recognised but not implemented; it has no effect")

    return issues


@dataclass
class IntelligenceSettings:
    """Snapshot of the intelligence options, adjustable at runtime."""

    realtime_processing: bool = True
    auto_reorganization: bool = False
    analysis_depth: str = "medium"
    recommendation_threshold: float = 0.6
    max_recommendations: int = 10
    learning_enabled: bool = True

    @classmethod
    def from_env(cls) -> "IntelligenceSettings":
        return cls(
            realtime_processing=is_realtime_processing_enabled(),
            auto_reorganization=is_auto_reorganization_enabled(),
            analysis_depth=get_analysis_depth(),
            recommendation_threshold=get_recommendation_threshold(),
            max_recommendations=get_max_recommendations(),
            learning_enabled=is_learning_enabled(),
        )
