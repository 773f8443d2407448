"""
Record module for embeddings stored in the similarity engine.

This module defines the unit of storage: an identifier, its embedding vector
and a free-form mapping of JSON-compatible fields.
"""

from typing import Optional, Dict, Any, List, Union, Sequence

import numpy as np

# Reserved keys used in persisted records and query results
F_ID = "__id__"
F_METRICS = "__metrics__"

JSONValue = Union[None, bool, int, float, str, List["JSONValue"], Dict[str, "JSONValue"]]


def check_fields(fields: Dict[str, Any]) -> None:
    """Reject field mappings that use a reserved key."""
    if F_ID in fields:
        raise ValueError(f"Field name {F_ID!r} is reserved")


class Record:
    """
    Represents a single embedding together with its metadata.

    Once a record has been accepted by the engine its normalized vector lives
    in the engine's flat matrix; the stored record itself keeps ``vector=None``.
    """

    def __init__(
        self,
        id: str,
        vector: Optional[Union[Sequence[float], np.ndarray]] = None,
        fields: Optional[Dict[str, JSONValue]] = None,
    ):
        """
        Initialize a Record.

        Args:
            id: Unique identifier of the record
            vector: Embedding vector (length must match the engine dimension)
            fields: Metadata fields, replaced wholesale on update
        """
        if not isinstance(id, str):
            raise TypeError(f"Record id must be a string, got {type(id).__name__}")
        check_fields(fields or {})

        self.id = id
        self.vector = vector
        self.fields: Dict[str, JSONValue] = dict(fields) if fields else {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the record to its persisted form.

        The vector is not included; the fields are flattened next to the id.

        Returns:
            Dictionary with the id under ``__id__`` and every field at top level
        """
        data: Dict[str, Any] = dict(self.fields)
        data[F_ID] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        """
        Create a record from its persisted form.

        Args:
            data: Dictionary holding ``__id__`` plus the record fields

        Returns:
            A new Record without a vector
        """
        fields = dict(data)
        record_id = fields.pop(F_ID)
        return cls(id=record_id, fields=fields)

    def __eq__(self, other):
        if not isinstance(other, Record):
            return False
        if self.id != other.id or self.fields != other.fields:
            return False
        if self.vector is None or other.vector is None:
            return self.vector is None and other.vector is None
        return np.array_equal(np.asarray(self.vector), np.asarray(other.vector))

    def __repr__(self):
        dim = None if self.vector is None else len(self.vector)
        return f"Record(id={self.id!r}, dim={dim}, fields={self.fields!r})"
