"""
Shared fixtures: a keyword-count embedding source so similarity follows word
overlap, and a fixed clock for temporal scoring.
"""

from datetime import datetime, timedelta
import re

import pytest

from recall.core.items import Item
from recall.recommend.engine import RecommendationEngine
from recall.recommend.schemas import UserPreferences
from recall.vector.embeddings import EmbeddingGenerator, EmbeddingResponse, EmbeddingSource
from recall.vector.index import InMemoryVectorIndex

VOCAB = [
    "react", "component", "jsx", "vue", "python", "database",
    "query", "sql", "css", "hooks", "docker", "deploy",
]

NOW = datetime(2024, 6, 1, 12, 0, 0)


class KeywordEmbeddingSource(EmbeddingSource):
    """Counts vocabulary words. Records every text it is asked to embed."""

    def __init__(self, vocab=VOCAB):
        self.vocab = list(vocab)
        self.calls = []

    def supports_embedding(self) -> bool:
        return True

    def embed(self, text: str) -> EmbeddingResponse:
        self.calls.append(text)
        tokens = re.findall(r"[a-z]+", text.lower())
        return EmbeddingResponse(embedding=[float(tokens.count(word)) for word in self.vocab])


@pytest.fixture
def keyword_source():
    return KeywordEmbeddingSource()


@pytest.fixture
def index(keyword_source):
    return InMemoryVectorIndex(EmbeddingGenerator(keyword_source, dimension=len(VOCAB)))


@pytest.fixture
def engine(index):
    return RecommendationEngine(
        index,
        preferences=UserPreferences(),
        max_results=10,
        learning_enabled=True,
        related_threshold=0.6,
        clock=lambda: NOW,
    )


@pytest.fixture
def make_item():
    """Factory for items created relative to NOW."""

    def _make(item_id, content, item_type="code", title=None, days_old=0, preview=None, **metadata):
        return Item(
            id=item_id,
            type=item_type,
            title=title or item_id,
            content=content,
            timestamp=NOW - timedelta(days=days_old),
            preview=preview,
            metadata=metadata,
        )

    return _make
