"""
Single-file JSON snapshot format for the similarity engine.

A snapshot is one JSON document::

    {
        "embedding_dim": 3,
        "data": [{"__id__": "a", "title": "..."}, ...],
        "matrix": "<base64 of little-endian float32 bytes>",
        "additional_data": {...}          # omitted when empty
    }

Records are stored without vectors; chunk ``i`` of the decoded matrix
belongs to ``data[i]``.
"""

import base64
import binascii
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

import numpy as np

from nano_vectordb.engine.interfaces import CorruptStoreError, VectorStoreIOError
from nano_vectordb.engine.normalizer import FLOAT_DTYPE
from nano_vectordb.model.record import Record, F_ID

_FLOAT_SIZE = FLOAT_DTYPE.itemsize


@dataclass
class Snapshot:
    """In-memory form of a persisted store."""

    embedding_dim: int
    data: List[Record] = field(default_factory=list)
    matrix: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=FLOAT_DTYPE))
    additional_data: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        """Check that the matrix holds exactly one chunk per record."""
        expected = len(self.data) * self.embedding_dim
        if self.matrix.size != expected:
            raise CorruptStoreError(expected, int(self.matrix.size))


def encode_matrix(matrix: np.ndarray) -> str:
    """Encode a float matrix as standard base64 of little-endian float32 bytes."""
    raw = np.ascontiguousarray(matrix, dtype=FLOAT_DTYPE).tobytes()
    return base64.b64encode(raw).decode("ascii")


def decode_matrix(encoded: str) -> np.ndarray:
    """
    Decode a base64 matrix string into a flat float32 array.

    Every complete 4-byte group is read as one little-endian float; a
    trailing partial group is ignored and shows up as a length mismatch.
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise VectorStoreIOError(f"Invalid base64 matrix payload: {e}") from e

    usable = len(raw) - len(raw) % _FLOAT_SIZE
    return np.frombuffer(raw[:usable], dtype=FLOAT_DTYPE).copy()


def encode_snapshot(snapshot: Snapshot, pretty_print: bool = False) -> str:
    """Serialize a snapshot to its JSON text."""
    document: Dict[str, Any] = {
        "embedding_dim": snapshot.embedding_dim,
        "data": [record.to_dict() for record in snapshot.data],
        "matrix": encode_matrix(snapshot.matrix),
    }
    if snapshot.additional_data:
        document["additional_data"] = snapshot.additional_data

    try:
        if pretty_print:
            return json.dumps(document, indent=2, ensure_ascii=False)
        return json.dumps(document, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise VectorStoreIOError(f"Snapshot is not JSON serializable: {e}") from e


def decode_snapshot(text: str) -> Snapshot:
    """
    Parse snapshot JSON text and validate it.

    Raises:
        VectorStoreIOError: If the text is not a well-formed snapshot document
        CorruptStoreError: If the matrix length does not match the records
    """
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise VectorStoreIOError(f"Malformed snapshot JSON: {e}") from e

    if not isinstance(document, dict):
        raise VectorStoreIOError("Snapshot document must be a JSON object")

    try:
        embedding_dim = int(document["embedding_dim"])
        raw_records = document["data"]
        encoded_matrix = document["matrix"]
    except KeyError as e:
        raise VectorStoreIOError(f"Snapshot is missing required key {e}") from e
    except (TypeError, ValueError) as e:
        raise VectorStoreIOError(f"Invalid snapshot embedding_dim: {e}") from e

    if not isinstance(raw_records, list) or not isinstance(encoded_matrix, str):
        raise VectorStoreIOError("Snapshot 'data' must be a list and 'matrix' a string")

    try:
        records = [Record.from_dict(item) for item in raw_records]
    except (KeyError, TypeError, ValueError) as e:
        raise VectorStoreIOError(f"Invalid record in snapshot (every record needs {F_ID!r}): {e}") from e

    additional_data = document.get("additional_data") or {}
    if not isinstance(additional_data, dict):
        raise VectorStoreIOError("Snapshot 'additional_data' must be a JSON object")

    snapshot = Snapshot(
        embedding_dim=embedding_dim,
        data=records,
        matrix=decode_matrix(encoded_matrix),
        additional_data=additional_data,
    )
    snapshot.validate()
    return snapshot


def write_snapshot(path: Union[str, Path], snapshot: Snapshot, pretty_print: bool = False) -> None:
    """Serialize a snapshot and overwrite the file at ``path``."""
    text = encode_snapshot(snapshot, pretty_print=pretty_print)
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise VectorStoreIOError(f"Failed to write snapshot to {path}: {e}") from e


def read_snapshot(path: Union[str, Path]) -> Snapshot:
    """Read and validate the snapshot stored at ``path``."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise VectorStoreIOError(f"Failed to read snapshot from {path}: {e}") from e
    return decode_snapshot(text)
