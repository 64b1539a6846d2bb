"""
Action registry and dispatcher.

Each action declares which resource it needs (nothing, a read-only chain
client, or a value-moving smart account). Dispatch validates the raw
arguments, resolves that resource from the caller's context and always
returns a single human-readable string.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ...logging_config import action_context
from ..errors import CapabilityMissing, describe_exception


class ResourceRequirement(str, Enum):
    """What an action handler receives besides its arguments."""
    NONE = "none"
    READ_ONLY_CLIENT = "read_only_client"
    VALUE_ACCOUNT = "value_account"


class ToolDefinition(BaseModel):
    """LLM-facing description of an action"""
    name: str
    description: str
    input_schema: Dict[str, Any] = Field(default_factory=dict)

    def to_anthropic_format(self) -> Dict[str, Any]:
        """Convert to Anthropic's tool schema format"""
        schema = dict(self.input_schema) or {"type": "object", "properties": {}}
        schema.pop("title", None)
        schema.pop("description", None)
        schema.setdefault("type", "object")
        schema.setdefault("properties", {})
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": schema,
        }


class ToolCall(BaseModel):
    """A tool call requested by the LLM"""
    id: str
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """Result of executing a tool"""
    tool_call_id: str
    result: str

    def to_anthropic_format(self) -> Dict[str, Any]:
        return {
            "type": "tool_result",
            "tool_use_id": self.tool_call_id,
            "content": self.result,
        }


@dataclass(frozen=True)
class ActionDescriptor:
    """A named, schema-validated action. Immutable once registered."""
    name: str
    description: str
    input_schema: Type[BaseModel]
    resource: ResourceRequirement
    handler: Callable[..., Awaitable[str]]

    def to_definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description.strip(),
            input_schema=self.input_schema.model_json_schema(),
        )


@dataclass
class ActionContext:
    """Resources available to a dispatch. Either may be missing."""
    read_client: Any = None
    account: Any = None


def missing_client_message(name: str) -> str:
    return (
        f"Unable to run Action: {name}. A chain client is required. "
        "Please configure the session with an RPC endpoint to run this action."
    )


class ActionRegistry:
    """
    Registry of available actions.

    Handlers convert their own failures into sentences; the registry only
    adds a last-resort guard so nothing escapes `dispatch` as an exception.
    """

    def __init__(
        self,
        descriptors: Optional[Iterable[ActionDescriptor]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._actions: Dict[str, ActionDescriptor] = {}
        self.logger = logger or logging.getLogger(__name__)
        for descriptor in descriptors or []:
            self.register(descriptor)

    def register(self, descriptor: ActionDescriptor) -> None:
        if descriptor.name in self._actions:
            raise ValueError(f"Action already registered: {descriptor.name}")
        self._actions[descriptor.name] = descriptor

    def get(self, name: str) -> Optional[ActionDescriptor]:
        return self._actions.get(name)

    def names(self) -> List[str]:
        return list(self._actions)

    def __contains__(self, name: object) -> bool:
        return name in self._actions

    def __len__(self) -> int:
        return len(self._actions)

    def get_definitions(self) -> List[ToolDefinition]:
        """Get all action definitions for passing to the LLM."""
        return [descriptor.to_definition() for descriptor in self._actions.values()]

    def _parse_args(self, descriptor: ActionDescriptor, raw_args: Dict[str, Any]) -> BaseModel:
        try:
            return descriptor.input_schema.model_validate(raw_args)
        except PydanticValidationError as exc:
            # Degraded mode: the handler still runs, on unvalidated input.
            self.logger.warning(
                f"Input validation failed for {descriptor.name}; "
                f"continuing with unvalidated arguments: {exc}"
            )
            return descriptor.input_schema.model_construct(**raw_args)

    async def dispatch(
        self,
        name: str,
        raw_args: Optional[Dict[str, Any]],
        context: Any,
    ) -> str:
        """
        Run action `name` with `raw_args`.

        Args:
            name: Registered action name
            raw_args: Argument object as produced by the caller (LLM tool input)
            context: Anything exposing `read_client` and `account` (a session)

        Returns:
            The handler's result, or a sentence explaining why it could not run
        """
        descriptor = self._actions.get(name)
        if descriptor is None:
            available = ", ".join(sorted(self._actions)) or "none"
            return f"Unknown action: {name}. Available actions: {available}"

        raw_args = raw_args if raw_args is not None else {}
        if not isinstance(raw_args, dict):
            return f"Error executing {name}: arguments must be an object, got {type(raw_args).__name__}"

        with action_context(name):
            args = self._parse_args(descriptor, raw_args)
            try:
                if descriptor.resource is ResourceRequirement.NONE:
                    return await descriptor.handler(args)

                if descriptor.resource is ResourceRequirement.READ_ONLY_CLIENT:
                    client = getattr(context, "read_client", None)
                    if client is None:
                        return missing_client_message(name)
                    return await descriptor.handler(client, args)

                account = getattr(context, "account", None)
                if account is None:
                    return CapabilityMissing(name).message
                return await descriptor.handler(account, args)
            except Exception as exc:
                self.logger.error(f"Action execution error for {name}: {exc}")
                return f"Error executing {name}: {describe_exception(exc)}"

    async def execute_single(self, tool_call: ToolCall, context: Any) -> ToolResult:
        result = await self.dispatch(tool_call.name, tool_call.arguments, context)
        return ToolResult(tool_call_id=tool_call.id, result=result)

    async def execute_parallel(self, tool_calls: List[ToolCall], context: Any) -> List[ToolResult]:
        """Run independent tool calls concurrently; results keep the call order."""
        if not tool_calls:
            return []
        return list(await asyncio.gather(*(self.execute_single(tc, context) for tc in tool_calls)))


def default_registry() -> ActionRegistry:
    """Registry holding every built-in action."""
    from .actions import BUILTIN_ACTIONS

    return ActionRegistry(BUILTIN_ACTIONS)
