"""
gasless_agentkit

Agent-facing actions that move value through an ERC-4337 smart account
whose gas is paid by a paymaster.
"""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:  # pragma: no cover
    from .core.account.session import AgentkitSession
    from .core.agent.registry import ActionRegistry, default_registry

__all__ = ["ActionRegistry", "AgentkitSession", "default_registry"]


def __getattr__(name: str):  # pragma: no cover - simple thunk
    if name == "AgentkitSession":
        from .core.account.session import AgentkitSession as _AgentkitSession

        return _AgentkitSession
    if name in ("ActionRegistry", "default_registry"):
        from .core.agent import registry as _registry

        return getattr(_registry, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
