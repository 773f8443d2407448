"""
Interfaces for vector store implementations.
"""

from .vector_store_interface import (
    VectorStoreInterface,
    MetricType,
    VectorStoreError,
    DomainError,
    VectorStoreIOError,
    VectorStoreDimensionError,
    CorruptStoreError,
)

__all__ = [
    "VectorStoreInterface",
    "MetricType",
    "VectorStoreError",
    "DomainError",
    "VectorStoreIOError",
    "VectorStoreDimensionError",
    "CorruptStoreError",
]
