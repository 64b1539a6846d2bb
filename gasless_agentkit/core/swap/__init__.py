"""Single-chain swap orchestration."""

from typing import TYPE_CHECKING

from .models import SwapParams, SwapResult

if TYPE_CHECKING:  # pragma: no cover
    from .manager import SwapManager

__all__ = ["SwapManager", "SwapParams", "SwapResult"]


def __getattr__(name: str):  # pragma: no cover - simple thunk
    if name == "SwapManager":
        from .manager import SwapManager as _SwapManager

        return _SwapManager
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
