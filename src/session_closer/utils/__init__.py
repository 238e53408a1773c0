from .chunk import chunk_children
from .ids import normalize_id

__all__ = [
    "chunk_children",
    "normalize_id",
]
