"""
Similarity engine: normalization, top-k selection and the vector store.

Features:
- Flat float32 matrix of unit vectors, one chunk per record
- Exact cosine similarity search, fanned out over a thread pool
- Metadata filtering through a caller-supplied predicate
- Single-file JSON snapshot persistence

Usage:
    db = NanoVectorDB(embedding_dim=3, storage_file="./vectors.json")
    db.upsert([Record("a", [1.0, 0.0, 0.0]), Record("b", [0.0, 1.0, 0.0])])
    db.query([1.0, 0.0, 0.0], top_k=1)
"""

from .interfaces import (
    VectorStoreInterface,
    VectorStoreError,
    DomainError,
    VectorStoreIOError,
    VectorStoreDimensionError,
    CorruptStoreError,
)
from .normalizer import normalize, dot
from .top_k import TopKSelector
from .similarity_engine import NanoVectorDB

__all__ = [
    "NanoVectorDB",
    "TopKSelector",
    "normalize",
    "dot",
    "VectorStoreInterface",
    "VectorStoreError",
    "DomainError",
    "VectorStoreIOError",
    "VectorStoreDimensionError",
    "CorruptStoreError",
]
