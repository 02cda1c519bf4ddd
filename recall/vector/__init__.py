"""
Embedding generation, similarity search and clustering over an in-memory index.
"""

# Package initialization for vector module
from .index import IVectorIndex, InMemoryVectorIndex, item_from_record
from .types import VectorRecord, SimilarityResult, Cluster, IndexStats
from .embeddings import (
    EmbeddingGenerator,
    EmbeddingResponse,
    EmbeddingSource,
    IEmbeddingProvider,
    DeterministicHashEmbedding,
    SourceEmbedding,
    SentenceTransformerEmbedding,
    OpenAIEmbeddingSource,
)
from .similarity import cosine_similarity, euclidean_distance

__all__ = [
    'IVectorIndex',
    'InMemoryVectorIndex',
    'item_from_record',
    'VectorRecord',
    'SimilarityResult',
    'Cluster',
    'IndexStats',
    'EmbeddingGenerator',
    'EmbeddingResponse',
    'EmbeddingSource',
    'IEmbeddingProvider',
    'DeterministicHashEmbedding',
    'SourceEmbedding',
    'SentenceTransformerEmbedding',
    'OpenAIEmbeddingSource',
    'cosine_similarity',
    'euclidean_distance',
]
