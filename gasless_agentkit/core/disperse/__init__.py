"""Batch transfers to many recipients."""

from .manager import DisperseManager, validate_batch
from .models import DisperseParams, DisperseResult, TransferOutcome

__all__ = [
    "DisperseManager",
    "DisperseParams",
    "DisperseResult",
    "TransferOutcome",
    "validate_batch",
]
