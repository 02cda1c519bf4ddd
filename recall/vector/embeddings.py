"""
Embedding generation. A remote EmbeddingSource is preferred; any failure falls
back to deterministic local feature hashing so callers always get a vector.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import math
import threading
from typing import Dict, List, Optional

import numpy as np
import requests

from recall.core.config import get_embed_dim, get_embed_max_chars
from recall.core.errors import EmbeddingUnavailable
from recall.util.logging import logger


def string_hash(text: str) -> int:
    """Fast non-cryptographic 32-bit string hash (31-multiplier), absolute value."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def cache_key(text: str) -> str:
    """Cache key for the full, untruncated text. Collisions are tolerated."""
    return np.base_repr(string_hash(text), 36).lower()


@dataclass
class EmbeddingResponse:
    embedding: List[float]
    usage: Optional[Dict[str, int]] = None


class EmbeddingSource(ABC):
    """Remote embedding capability consumed by the generator."""

    @abstractmethod
    def supports_embedding(self) -> bool:
        """Whether this source is configured to produce embeddings."""
        pass

    @abstractmethod
    def embed(self, text: str) -> EmbeddingResponse:
        """Embed text. Raise on invalid credentials, model or payload."""
        pass


class SentenceTransformerEmbedding(EmbeddingSource):
    """Sentence transformers embedding source using pre-trained models.

    The model is loaded on first use. Set EMBED_DIM to the model's output
    dimension (768 for all-mpnet-base-v2) or every vector will be rejected.
    """

    def __init__(self, model_name: str = "all-mpnet-base-v2"):
        self.model_name = model_name
        self._model = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def supports_embedding(self) -> bool:
        return bool(self.model_name)

    def embed(self, text: str) -> EmbeddingResponse:
        embedding = self.model.encode(text, convert_to_tensor=False)
        return EmbeddingResponse(embedding=embedding.tolist())


class OpenAIEmbeddingSource(EmbeddingSource):
    """OpenAI-compatible /embeddings HTTP endpoint."""

    def __init__(self, api_key: Optional[str], model_name: str = "text-embedding-ada-002",
                 base_url: str = "https://api.openai.com/v1/embeddings", timeout: int = 30):
        self.api_key = api_key
        self.model_name = model_name
        self.base_url = base_url
        self.timeout = timeout

    def supports_embedding(self) -> bool:
        return bool(self.api_key) and bool(self.model_name)

    def embed(self, text: str) -> EmbeddingResponse:
        if not self.api_key:
            raise EmbeddingUnavailable("Embedding API key is not configured")

        try:
            response = requests.post(
                self.base_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={"model": self.model_name, "input": text},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise EmbeddingUnavailable(f"Embedding request failed: {e}") from e

        if response.status_code != 200:
            raise EmbeddingUnavailable(
                f"Embedding API error: {response.status_code} - {response.text[:200]}"
            )

        try:
            data = response.json()
            return EmbeddingResponse(
                embedding=list(data["data"][0]["embedding"]),
                usage=data.get("usage"),
            )
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise EmbeddingUnavailable(f"Malformed embedding response: {e}") from e


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> np.ndarray:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Local feature-hashing embedding.

    Each lower-cased whitespace token is hashed; the hash rotates a sinusoid
    whose phase depends on the token's relative position in the text. The sum
    over tokens is L2-normalised. Empty text yields the zero vector.
    """

    def __init__(self, dimension: int = 1536):
        self.dimension = dimension
        self._dims = np.arange(dimension)

    def embed_text(self, text: str) -> np.ndarray:
        vector = np.zeros(self.dimension, dtype=np.float64)
        tokens = text.lower().split()
        if not tokens:
            return vector

        count = len(tokens)
        scale = 1.0 / math.sqrt(count)
        for index, token in enumerate(tokens):
            offset = string_hash(token)
            position = index / count
            features = (offset + self._dims) % self.dimension
            vector[features] += np.sin(position * math.pi + self._dims) * scale

        magnitude = np.linalg.norm(vector)
        if magnitude > 0:
            vector /= magnitude
        return vector

    def get_dimension(self) -> int:
        return self.dimension


class SourceEmbedding(IEmbeddingProvider):
    """Embedding provider backed by a remote EmbeddingSource.

    Every failure is reported as EmbeddingUnavailable, including a vector of
    the wrong dimension.
    """

    def __init__(self, source: EmbeddingSource, dimension: int = 1536, max_chars: int = 8000):
        self.source = source
        self.dimension = dimension
        self.max_chars = max_chars

    def embed_text(self, text: str) -> np.ndarray:
        if not self.source.supports_embedding():
            raise EmbeddingUnavailable(f"{type(self.source).__name__} does not support embeddings")

        try:
            response = self.source.embed(text[:self.max_chars])
        except EmbeddingUnavailable:
            raise
        except Exception as e:
            raise EmbeddingUnavailable(f"{type(self.source).__name__} failed: {e}") from e

        try:
            vector = np.asarray(response.embedding, dtype=np.float64).reshape(-1)
        except (TypeError, ValueError) as e:
            raise EmbeddingUnavailable(f"Malformed embedding: {e}") from e

        if vector.shape[0] != self.dimension:
            raise EmbeddingUnavailable(
                f"Embedding has {vector.shape[0]} dimensions, index expects {self.dimension}"
            )
        if not np.all(np.isfinite(vector)):
            raise EmbeddingUnavailable("Embedding contains non-finite values")
        return vector

    def get_dimension(self) -> int:
        return self.dimension


class EmbeddingGenerator:
    """
    Text to vector with a content-keyed cache.

    The provider is chosen once at construction: SourceEmbedding when a remote
    source is given, DeterministicHashEmbedding otherwise. Remote failures fall
    back to local hashing and are never raised.
    """

    def __init__(self, source: Optional[EmbeddingSource] = None, dimension: int = None, max_chars: int = None):
        self.dimension = dimension or get_embed_dim()
        self.max_chars = max_chars or get_embed_max_chars()
        self.local = DeterministicHashEmbedding(self.dimension)
        if source is not None:
            self.provider: IEmbeddingProvider = SourceEmbedding(source, self.dimension, self.max_chars)
        else:
            self.provider = self.local

        # No eviction: grows with the number of distinct texts embedded.
        self._cache: Dict[str, np.ndarray] = {}
        self._lock = threading.RLock()

    @property
    def uses_remote(self) -> bool:
        return self.provider is not self.local

    def embed(self, text: str) -> np.ndarray:
        """Return the embedding for text, from cache when possible."""
        key = cache_key(text)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        vector = self._generate(text)
        vector.setflags(write=False)
        with self._lock:
            self._cache[key] = vector
        return vector

    def embed_batch(self, texts: List[str]) -> List[np.ndarray]:
        return [self.embed(text) for text in texts]

    def _generate(self, text: str) -> np.ndarray:
        if not self.uses_remote:
            return self.local.embed_text(text)

        try:
            return self.provider.embed_text(text)
        except EmbeddingUnavailable as e:
            logger.log_embedding_fallback(str(e), len(text))
            return self.local.embed_text(text)

    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
