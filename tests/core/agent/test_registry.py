"""
Tests for action registration, dispatch and resource resolution.
"""

from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel, Field

from gasless_agentkit.core.agent.registry import (
    ActionContext,
    ActionDescriptor,
    ActionRegistry,
    ResourceRequirement,
    ToolCall,
    default_registry,
)


class EchoInput(BaseModel):
    count: int = Field(description="How many times to echo")
    word: str = "hi"


def _descriptor(name="echo", resource=ResourceRequirement.NONE, handler=None):
    async def echo(*args):
        parsed = args[-1]
        return f"{parsed.word} x{parsed.count}"

    return ActionDescriptor(
        name=name,
        description="  Echo a word.  ",
        input_schema=EchoInput,
        resource=resource,
        handler=handler or echo,
    )


@pytest.mark.asyncio
async def test_dispatch_validates_and_runs_handler():
    registry = ActionRegistry([_descriptor()])

    result = await registry.dispatch("echo", {"count": "3", "word": "yo"}, ActionContext())

    assert result == "yo x3"


@pytest.mark.asyncio
async def test_invalid_arguments_still_reach_handler():
    registry = ActionRegistry([_descriptor()])

    result = await registry.dispatch("echo", {"count": "many"}, ActionContext())

    assert result == "hi xmany"


@pytest.mark.asyncio
async def test_unknown_action_lists_available_names():
    registry = ActionRegistry([_descriptor()])

    result = await registry.dispatch("nope", {}, ActionContext())

    assert result == "Unknown action: nope. Available actions: echo"


@pytest.mark.asyncio
async def test_non_object_arguments_are_rejected():
    registry = ActionRegistry([_descriptor()])

    result = await registry.dispatch("echo", ["count"], ActionContext())

    assert result == "Error executing echo: arguments must be an object, got list"


def test_duplicate_registration_raises():
    registry = ActionRegistry([_descriptor()])

    with pytest.raises(ValueError, match="already registered"):
        registry.register(_descriptor())


@pytest.mark.asyncio
async def test_value_action_without_account_reports_capability_missing():
    handler = AsyncMock(return_value="moved")
    registry = ActionRegistry([_descriptor("move", ResourceRequirement.VALUE_ACCOUNT, handler)])

    result = await registry.dispatch("move", {"count": 1}, ActionContext(read_client=object()))

    assert result.startswith("Unable to run Action: move. A Smart Account is required.")
    handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_read_action_without_client_reports_missing_client():
    handler = AsyncMock(return_value="read")
    registry = ActionRegistry([_descriptor("look", ResourceRequirement.READ_ONLY_CLIENT, handler)])

    result = await registry.dispatch("look", {"count": 1}, ActionContext())

    assert result.startswith("Unable to run Action: look. A chain client is required.")
    handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_resources_are_passed_to_handlers():
    client, account = object(), object()
    read_handler = AsyncMock(return_value="read")
    value_handler = AsyncMock(return_value="moved")
    registry = ActionRegistry([
        _descriptor("look", ResourceRequirement.READ_ONLY_CLIENT, read_handler),
        _descriptor("move", ResourceRequirement.VALUE_ACCOUNT, value_handler),
    ])
    context = ActionContext(read_client=client, account=account)

    assert await registry.dispatch("look", {"count": 1}, context) == "read"
    assert await registry.dispatch("move", {"count": 1}, context) == "moved"
    assert read_handler.await_args.args[0] is client
    assert value_handler.await_args.args[0] is account


@pytest.mark.asyncio
async def test_handler_exception_becomes_a_sentence():
    handler = AsyncMock(side_effect=RuntimeError("boom"))
    registry = ActionRegistry([_descriptor(handler=handler)])

    result = await registry.dispatch("echo", {"count": 1}, ActionContext())

    assert result == "Error executing echo: boom"


def test_definitions_use_schema_and_trimmed_description():
    registry = ActionRegistry([_descriptor()])

    (definition,) = registry.get_definitions()
    tool = definition.to_anthropic_format()

    assert tool["name"] == "echo"
    assert tool["description"] == "Echo a word."
    assert tool["input_schema"]["type"] == "object"
    assert "title" not in tool["input_schema"]
    assert set(tool["input_schema"]["properties"]) == {"count", "word"}
    assert tool["input_schema"]["required"] == ["count"]


@pytest.mark.asyncio
async def test_execute_parallel_keeps_call_order():
    registry = ActionRegistry([_descriptor()])
    calls = [
        ToolCall(id="a", name="echo", arguments={"count": 1}),
        ToolCall(id="b", name="missing"),
        ToolCall(id="c", name="echo", arguments={"count": 2}),
    ]

    results = await registry.execute_parallel(calls, ActionContext())

    assert [r.tool_call_id for r in results] == ["a", "b", "c"]
    assert results[0].result == "hi x1"
    assert results[1].result.startswith("Unknown action: missing")
    assert results[2].to_anthropic_format() == {
        "type": "tool_result",
        "tool_use_id": "c",
        "content": "hi x2",
    }


def test_default_registry_holds_builtin_actions():
    registry = default_registry()

    assert registry.names() == [
        "get_address",
        "get_balance",
        "get_token_details",
        "read_contract",
        "encode_function_data",
        "send_transaction",
        "smart_transfer",
        "smart_swap",
        "smart_bridge",
        "disperse_tokens",
        "check_transaction_status",
    ]
    for definition in registry.get_definitions():
        assert definition.description
        assert definition.to_anthropic_format()["input_schema"]["type"] == "object"
