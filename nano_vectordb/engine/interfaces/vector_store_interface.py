"""
Abstract interface for vector stores.

This module defines the base interface implemented by the similarity engine
and the exception hierarchy shared by the engine, the snapshot codec and the
tenant cache.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, Tuple, Callable, Sequence
from enum import Enum

from nano_vectordb.model.record import Record


class MetricType(Enum):
    """Supported similarity metrics."""

    COSINE = "cosine"


class VectorStoreInterface(ABC):
    """
    Abstract base class for embedded vector stores.

    Implementations keep records and their embeddings in memory and persist
    the whole state to a single storage file on demand.
    """

    @property
    @abstractmethod
    def embedding_dim(self) -> int:
        """Return the vector dimension."""
        pass

    @property
    def metric(self) -> str:
        """Return the similarity metric name."""
        return MetricType.COSINE.value

    @abstractmethod
    def upsert(self, records: Sequence[Record]) -> Tuple[List[str], List[str]]:
        """
        Insert new records and replace existing ones.

        Args:
            records: Records to upsert

        Returns:
            Tuple of (updated_ids, inserted_ids)
        """
        pass

    @abstractmethod
    def query(
        self,
        query: Sequence[float],
        top_k: Optional[int] = None,
        better_than: Optional[float] = None,
        filter: Optional[Callable[[Record], bool]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Find the stored records most similar to a query vector.

        Args:
            query: Query embedding vector
            top_k: Maximum number of results to return
            better_than: Minimum score a result must reach
            filter: Optional predicate; rejected records are never scored

        Returns:
            Result dictionaries sorted by descending score
        """
        pass

    @abstractmethod
    def get(self, ids: Sequence[str]) -> List[Record]:
        """
        Get stored records by ID.

        Args:
            ids: IDs to look up

        Returns:
            Matching records in store order; unknown IDs are omitted
        """
        pass

    @abstractmethod
    def delete(self, ids: Sequence[str]) -> None:
        """
        Delete records by ID.

        Args:
            ids: IDs to delete; unknown IDs are ignored
        """
        pass

    @abstractmethod
    def save(self) -> None:
        """Persist the current state to the storage file."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    def is_empty(self) -> bool:
        """Check whether the store holds no records."""
        return len(self) == 0

    def __str__(self) -> str:
        """String representation of the vector store."""
        return f"{self.__class__.__name__}(dim={self.embedding_dim}, records={len(self)})"


class VectorStoreError(Exception):
    """Base exception for vector store related errors."""

    pass


class DomainError(VectorStoreError, ValueError):
    """Exception raised when a vector cannot be normalized."""

    pass


class VectorStoreIOError(VectorStoreError):
    """Exception raised for storage file read/write or decoding failures."""

    pass


class VectorStoreDimensionError(VectorStoreError):
    """Exception raised for dimension mismatches."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Vector dimension mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class CorruptStoreError(VectorStoreError):
    """Exception raised when a snapshot's matrix does not match its records."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Matrix size mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual
