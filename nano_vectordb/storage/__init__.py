"""
Snapshot persistence for the similarity engine.
"""

from .snapshot_codec import (
    Snapshot,
    encode_matrix,
    decode_matrix,
    encode_snapshot,
    decode_snapshot,
    write_snapshot,
    read_snapshot,
)

__all__ = [
    "Snapshot",
    "encode_matrix",
    "decode_matrix",
    "encode_snapshot",
    "decode_snapshot",
    "write_snapshot",
    "read_snapshot",
]
