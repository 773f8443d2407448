"""
nano-vectordb: an embedded vector store with exact cosine-similarity search.
"""

from nano_vectordb.model.record import Record, F_ID, F_METRICS
from nano_vectordb.engine import (
    NanoVectorDB,
    TopKSelector,
    normalize,
    dot,
    VectorStoreError,
    DomainError,
    VectorStoreIOError,
    VectorStoreDimensionError,
    CorruptStoreError,
)
from nano_vectordb.tenancy import MultiTenantNanoVDB

__version__ = "0.1.0"

__all__ = [
    "Record",
    "F_ID",
    "F_METRICS",
    "NanoVectorDB",
    "MultiTenantNanoVDB",
    "TopKSelector",
    "normalize",
    "dot",
    "VectorStoreError",
    "DomainError",
    "VectorStoreIOError",
    "VectorStoreDimensionError",
    "CorruptStoreError",
]
