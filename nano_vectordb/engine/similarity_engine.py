"""
Brute-force cosine similarity engine.

This module provides an embedded vector store that keeps every normalized
embedding in one flat float32 matrix, answers exact top-k queries by scoring
all stored vectors, and persists its whole state to a single JSON snapshot.

Usage:
    db = NanoVectorDB(768, "./data/vectors.json")
    db.upsert([Record("doc-1", embedding, {"title": "Intro"})])
    results = db.query(query_embedding, top_k=5)
    db.save()
"""

from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from nano_vectordb.engine.interfaces import (
    VectorStoreInterface,
    VectorStoreDimensionError,
    VectorStoreIOError,
)
from nano_vectordb.engine.normalizer import FLOAT_DTYPE, as_vector, normalize
from nano_vectordb.engine.top_k import TopKSelector
from nano_vectordb.model.record import Record, F_ID, F_METRICS, check_fields
from nano_vectordb.monitoring.structured_logger import OperationLogger, get_logger
from nano_vectordb.storage.snapshot_codec import Snapshot, read_snapshot, write_snapshot

# Default better_than threshold: the most negative float32, i.e. no filtering
MIN_SCORE = -float(np.finfo(np.float32).max)

RecordFilter = Callable[[Record], bool]


class NanoVectorDB(VectorStoreInterface):
    """
    Embedded vector store with exact cosine-similarity search.

    Records are kept in insertion order; chunk ``i`` of the flat matrix holds
    the normalized vector of ``records[i]``. The store is not internally
    synchronized: mutating calls (upsert, delete, save) need exclusive access,
    while concurrent queries against an unchanging store are safe.
    """

    def __init__(
        self,
        embedding_dim: int,
        storage_file: Union[str, Path] = "nano-vectordb.json",
        workers: int = 4,
        partition_size: int = 10000,
        pretty_print: bool = False,
        default_top_k: int = 10,
    ):
        """
        Open a store, loading ``storage_file`` when it exists and is non-empty.

        Args:
            embedding_dim: Dimension of every stored vector
            storage_file: Snapshot file used by load and save
            workers: Maximum threads used to score one query
            partition_size: Minimum rows scored per worker task
            pretty_print: Indent the snapshot JSON on save
            default_top_k: Result count used when ``query`` gets no ``top_k``

        Raises:
            CorruptStoreError: If the snapshot matrix does not match its records
            VectorStoreDimensionError: If the snapshot was written with another dimension
            VectorStoreIOError: If the snapshot cannot be read or parsed
        """
        if isinstance(embedding_dim, bool) or not isinstance(embedding_dim, int) or embedding_dim <= 0:
            raise ValueError(f"embedding_dim must be a positive integer, got {embedding_dim!r}")
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        if partition_size < 1:
            raise ValueError(f"partition_size must be at least 1, got {partition_size}")
        if default_top_k < 0:
            raise ValueError(f"default_top_k must be non-negative, got {default_top_k}")

        self._embedding_dim = embedding_dim
        self.storage_file = Path(storage_file)
        self.workers = workers
        self.partition_size = partition_size
        self.pretty_print = pretty_print
        self.default_top_k = default_top_k
        self.logger = get_logger(__name__, component="similarity_engine")

        snapshot = self._load_or_initialize()
        self._records: List[Record] = snapshot.data
        self._matrix: np.ndarray = snapshot.matrix
        self._additional_data: Dict[str, Any] = snapshot.additional_data
        self._positions: Dict[str, int] = {}
        self._rebuild_positions()

    @classmethod
    def open(cls, embedding_dim: int, storage_file: Union[str, Path], **kwargs) -> "NanoVectorDB":
        """Open (or create) the store backed by ``storage_file``."""
        return cls(embedding_dim, storage_file, **kwargs)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "NanoVectorDB":
        """
        Build a store from a configuration dictionary.

        Args:
            config: Dictionary with ``embedding_dim`` and ``storage_file`` plus
                optional ``workers``, ``partition_size``, ``pretty_print`` and
                ``default_top_k`` (see ``ConfigManager.get_engine_config``)
        """
        return cls(
            config["embedding_dim"],
            config["storage_file"],
            workers=config.get("workers", 4),
            partition_size=config.get("partition_size", 10000),
            pretty_print=config.get("pretty_print", False),
            default_top_k=config.get("default_top_k", 10),
        )

    @property
    def embedding_dim(self) -> int:
        return self._embedding_dim

    def _load_or_initialize(self) -> Snapshot:
        """Read the snapshot file, or start an empty store when there is none."""
        try:
            has_snapshot = self.storage_file.exists() and self.storage_file.stat().st_size > 0
        except OSError as e:
            raise VectorStoreIOError(f"Cannot access {self.storage_file}: {e}") from e

        if not has_snapshot:
            self.logger.debug("Starting empty store", storage_file=str(self.storage_file))
            return Snapshot(embedding_dim=self._embedding_dim)

        with OperationLogger(self.logger, "load_snapshot", storage_file=str(self.storage_file)):
            snapshot = read_snapshot(self.storage_file)
            if snapshot.embedding_dim != self._embedding_dim:
                raise VectorStoreDimensionError(self._embedding_dim, snapshot.embedding_dim)
        return snapshot

    def _rebuild_positions(self):
        self._positions = {record.id: i for i, record in enumerate(self._records)}

    def _matrix_view(self) -> np.ndarray:
        """The flat matrix as a (records, embedding_dim) view."""
        return self._matrix.reshape(-1, self._embedding_dim)

    def _prepare_vector(self, vector) -> np.ndarray:
        """Check a vector's dimension and return its normalized form."""
        if vector is None:
            raise VectorStoreDimensionError(self._embedding_dim, 0)
        array = as_vector(vector)
        if array.shape[0] != self._embedding_dim:
            raise VectorStoreDimensionError(self._embedding_dim, array.shape[0])
        return normalize(array)

    def upsert(self, records: Sequence[Record]) -> Tuple[List[str], List[str]]:
        """
        Insert new records and replace existing ones.

        Records whose id was stored before the call are updated in place:
        their matrix chunk is overwritten and their fields replaced. All other
        records are appended. A new id repeated within the batch is inserted
        once, and its last occurrence supplies the stored vector and fields.

        The batch is not atomic: if a record fails validation or
        normalization, records processed before it stay applied.

        Args:
            records: Records to upsert

        Returns:
            Tuple of (updated_ids, inserted_ids) in processing order

        Raises:
            VectorStoreDimensionError: If a vector has the wrong length
            DomainError: If a vector has (near) zero magnitude
            ValueError: If a record's fields use the reserved ``__id__`` key
        """
        records = list(records)
        existing_ids = set(self._positions)
        updated_ids: List[str] = []
        inserted_ids: List[str] = []

        with OperationLogger(self.logger, "upsert", batch_size=len(records)) as op:
            matrix = self._matrix_view()
            for record in records:
                if record.id not in existing_ids:
                    continue
                check_fields(record.fields)
                position = self._positions[record.id]
                matrix[position] = self._prepare_vector(record.vector)
                self._records[position].fields = dict(record.fields)
                updated_ids.append(record.id)

            new_records: List[Record] = []
            new_vectors: List[np.ndarray] = []
            pending: Dict[str, int] = {}
            try:
                for record in records:
                    if record.id in existing_ids:
                        continue
                    check_fields(record.fields)
                    vector = self._prepare_vector(record.vector)
                    slot = pending.get(record.id)
                    if slot is None:
                        pending[record.id] = len(new_records)
                        new_records.append(Record(record.id, None, record.fields))
                        new_vectors.append(vector)
                        inserted_ids.append(record.id)
                    else:
                        new_records[slot].fields = dict(record.fields)
                        new_vectors[slot] = vector
            finally:
                self._append(new_records, new_vectors)

            op.context.update(updated=len(updated_ids), inserted=len(inserted_ids))

        return updated_ids, inserted_ids

    def _append(self, records: List[Record], vectors: List[np.ndarray]):
        """Append records and their normalized vectors, keeping both in step."""
        if not records:
            return
        start = len(self._records)
        self._matrix = np.concatenate([self._matrix, np.stack(vectors).reshape(-1)])
        self._records.extend(records)
        for offset, record in enumerate(records):
            self._positions[record.id] = start + offset

    def query(
        self,
        query: Sequence[float],
        top_k: Optional[int] = None,
        better_than: Optional[float] = None,
        filter: Optional[RecordFilter] = None,
    ) -> List[Dict[str, Any]]:
        """
        Find the stored records most similar to a query vector.

        Args:
            query: Query embedding vector
            top_k: Maximum number of results to return, ``default_top_k``
                when omitted
            better_than: Minimum score a result must reach (inclusive)
            filter: Predicate over stored records; rejected records are not
                scored. The records it receives carry ``vector=None``.

        Returns:
            Dictionaries holding the record fields plus ``__id__`` and
            ``__metrics__`` (the cosine similarity), best match first

        Raises:
            VectorStoreDimensionError: If the query has the wrong length
            DomainError: If the query vector has (near) zero magnitude
        """
        if top_k is None:
            top_k = self.default_top_k
        if top_k < 0:
            raise ValueError(f"top_k must be non-negative, got {top_k}")

        probe = self._prepare_vector(query)
        records = self._records
        matrix = self._matrix_view()
        if top_k == 0 or not records:
            return []

        threshold = MIN_SCORE if better_than is None else float(better_than)
        ranges = self._partition(len(records))

        if len(ranges) == 1:
            start, stop = ranges[0]
            selector = self._select_range(probe, matrix, records, start, stop, top_k, threshold, filter)
        else:
            selector = TopKSelector(top_k)
            with ThreadPoolExecutor(
                max_workers=len(ranges), thread_name_prefix="nano-vdb-query"
            ) as executor:
                futures = [
                    executor.submit(
                        self._select_range, probe, matrix, records, start, stop, top_k, threshold, filter
                    )
                    for start, stop in ranges
                ]
                for future in futures:
                    selector.merge(future.result())

        results = []
        for score, index in selector.into_sorted():
            record = records[index]
            result: Dict[str, Any] = dict(record.fields)
            result[F_METRICS] = score
            result[F_ID] = record.id
            results.append(result)

        self.logger.debug(
            "Query completed",
            top_k=top_k,
            partitions=len(ranges),
            stored=len(records),
            returned=len(results),
        )
        return results

    def _partition(self, count: int) -> List[Tuple[int, int]]:
        """Split ``range(count)`` into at most ``workers`` contiguous ranges."""
        if count <= self.partition_size or self.workers == 1:
            return [(0, count)]
        step = max(self.partition_size, -(-count // self.workers))
        return [(start, min(start + step, count)) for start in range(0, count, step)]

    @staticmethod
    def _select_range(
        probe: np.ndarray,
        matrix: np.ndarray,
        records: List[Record],
        start: int,
        stop: int,
        top_k: int,
        threshold: float,
        filter: Optional[RecordFilter],
    ) -> TopKSelector:
        """Score rows ``start:stop`` and keep the best ``top_k`` of them."""
        selector = TopKSelector(top_k)

        if filter is None:
            indices = np.arange(start, stop)
            block = matrix[start:stop]
        else:
            indices = np.fromiter(
                (i for i in range(start, stop) if filter(records[i])), dtype=np.int64
            )
            if indices.size == 0:
                return selector
            block = matrix[indices]

        scores = block @ probe
        keep = scores.astype(np.float64) >= threshold
        selector.extend(zip(scores[keep].tolist(), indices[keep].tolist()))
        return selector

    def get(self, ids: Sequence[str]) -> List[Record]:
        """
        Get stored records by ID.

        Args:
            ids: IDs to look up

        Returns:
            Copies of the matching records, in store order, each carrying its
            normalized vector; unknown IDs are omitted
        """
        wanted = set(ids)
        matrix = self._matrix_view()
        return [
            Record(record.id, matrix[i].copy(), record.fields)
            for i, record in enumerate(self._records)
            if record.id in wanted
        ]

    def delete(self, ids: Sequence[str]) -> None:
        """
        Delete records by ID and compact the matrix.

        Compaction copies every surviving chunk, so a delete costs O(n)
        regardless of how many records it removes. Unknown IDs are ignored.

        Args:
            ids: IDs to delete
        """
        doomed = set(ids)
        keep = [i for i, record in enumerate(self._records) if record.id not in doomed]
        if len(keep) == len(self._records):
            return

        with OperationLogger(self.logger, "delete", requested=len(doomed)) as op:
            self._matrix = np.ascontiguousarray(self._matrix_view()[keep]).reshape(-1)
            removed = len(self._records) - len(keep)
            self._records = [self._records[i] for i in keep]
            self._rebuild_positions()
            op.context.update(removed=removed)

    def save(self) -> None:
        """
        Write the current state to the storage file.

        Raises:
            VectorStoreIOError: If the file cannot be written or a field value
                is not JSON serializable
        """
        snapshot = Snapshot(
            embedding_dim=self._embedding_dim,
            data=self._records,
            matrix=self._matrix,
            additional_data=self._additional_data,
        )
        with OperationLogger(
            self.logger, "save_snapshot", storage_file=str(self.storage_file), records=len(self)
        ):
            write_snapshot(self.storage_file, snapshot, pretty_print=self.pretty_print)

    def store_additional_data(self, data: Dict[str, Any]) -> None:
        """Replace the free-form metadata persisted alongside the records."""
        self._additional_data = dict(data)

    def get_additional_data(self) -> Dict[str, Any]:
        """Get the free-form metadata persisted alongside the records."""
        return self._additional_data

    def vector_byte_len(self) -> int:
        """Total number of float elements held in the matrix."""
        return int(self._matrix.size)

    def get_info(self) -> Dict[str, Any]:
        """
        Get information about the store.

        Returns:
            Dictionary with dimension, record count, metric and memory usage
        """
        return {
            "embedding_dim": self._embedding_dim,
            "num_records": len(self._records),
            "metric": self.metric,
            "storage_file": str(self.storage_file),
            "matrix_elements": self.vector_byte_len(),
            "matrix_bytes": int(self._matrix.nbytes),
            "additional_data_keys": sorted(self._additional_data),
        }

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: str) -> bool:
        return record_id in self._positions
