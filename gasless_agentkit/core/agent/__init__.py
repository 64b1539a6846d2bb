"""Action registry and the built-in actions."""

from .registry import (
    ActionContext,
    ActionDescriptor,
    ActionRegistry,
    ResourceRequirement,
    ToolCall,
    ToolDefinition,
    ToolResult,
    default_registry,
)

__all__ = [
    "ActionContext",
    "ActionDescriptor",
    "ActionRegistry",
    "ResourceRequirement",
    "ToolCall",
    "ToolDefinition",
    "ToolResult",
    "default_registry",
]
