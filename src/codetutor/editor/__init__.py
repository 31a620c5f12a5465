"""Editor-side primitives: the source buffer, diff helpers and block detection."""

from .block_locator import HeuristicBlockLocator, StructuralBlockLocator
from .document_model import BufferRangeError, SourceBuffer

__all__ = [
    "BufferRangeError",
    "HeuristicBlockLocator",
    "SourceBuffer",
    "StructuralBlockLocator",
]
