"""
Read-only chain JSON-RPC provider.

This is the non-mutating client handed to read-only actions: it can read
contract state, balances and the head height but never submits anything.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from eth_abi import decode, encode
from eth_utils import keccak, to_bytes

from .base import JsonRpcProvider, ProviderError
from ..config import settings
from ..services.tokens import get_default_rpc_url

logger = logging.getLogger(__name__)


class RpcError(ProviderError):
    """Chain RPC error."""
    pass


def _abi_type(param: Dict[str, Any]) -> str:
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(_abi_type(component) for component in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def _coerce_arg(abi_type: str, value: Any) -> Any:
    """Convert JSON-friendly argument values to what eth_abi expects."""
    if abi_type.endswith("]"):
        base = abi_type[: abi_type.rindex("[")]
        return [_coerce_arg(base, item) for item in value]
    if abi_type.startswith("(") and isinstance(value, (list, tuple)):
        inner = _split_tuple_types(abi_type[1:-1])
        return tuple(_coerce_arg(t, v) for t, v in zip(inner, value))
    if abi_type.startswith(("uint", "int")) and isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    if abi_type.startswith("bytes") and isinstance(value, str):
        return to_bytes(hexstr=value)
    if abi_type == "bool" and isinstance(value, str):
        return value.lower() == "true"
    return value


def _split_tuple_types(inner: str) -> List[str]:
    types, depth, current = [], 0, ""
    for char in inner:
        if char == "," and depth == 0:
            types.append(current)
            current = ""
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        current += char
    if current:
        types.append(current)
    return types


def _jsonable(value: Any) -> Any:
    if isinstance(value, bytes):
        return f"0x{value.hex()}"
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def find_function(abi: Sequence[Dict[str, Any]], function_name: str) -> Dict[str, Any]:
    for entry in abi:
        if entry.get("type", "function") == "function" and entry.get("name") == function_name:
            return entry
    raise ValueError(f"Function {function_name} not found in ABI")


def encode_function_call(abi: Sequence[Dict[str, Any]], function_name: str, args: Sequence[Any]) -> str:
    """Selector plus ABI-encoded arguments for `function_name`."""
    fragment = find_function(abi, function_name)
    input_types = [_abi_type(param) for param in fragment.get("inputs", [])]
    if len(input_types) != len(args):
        raise ValueError(
            f"Function {function_name} expects {len(input_types)} arguments, got {len(args)}"
        )
    signature = f"{function_name}({','.join(input_types)})"
    selector = keccak(text=signature)[:4]
    encoded = encode(input_types, [_coerce_arg(t, a) for t, a in zip(input_types, args)])
    return f"0x{(selector + encoded).hex()}"


def decode_function_result(abi: Sequence[Dict[str, Any]], function_name: str, data: str) -> Any:
    fragment = find_function(abi, function_name)
    output_types = [_abi_type(param) for param in fragment.get("outputs", [])]
    if not output_types:
        return None
    values = decode(output_types, to_bytes(hexstr=data))
    if len(values) == 1:
        return _jsonable(values[0])
    return _jsonable(values)


class ChainRpcProvider(JsonRpcProvider):
    name = "rpc"
    timeout_s = 20
    error_class = RpcError

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        chain_id: Optional[int] = None,
    ) -> None:
        self._chain_id = chain_id or settings.chain_id
        super().__init__(rpc_url or settings.rpc_url or get_default_rpc_url(self._chain_id), client)

    @property
    def chain_id(self) -> int:
        return self._chain_id

    async def get_block_number(self) -> int:
        result = await self._rpc_call("eth_blockNumber", [])
        return int(result, 16)

    async def get_native_balance(self, address: str) -> int:
        result = await self._rpc_call("eth_getBalance", [address, "latest"])
        return int(result, 16)

    async def get_gas_price(self) -> int:
        result = await self._rpc_call("eth_gasPrice", [])
        return int(result, 16)

    async def get_max_priority_fee(self) -> int:
        try:
            result = await self._rpc_call("eth_maxPriorityFeePerGas", [])
        except RpcError as exc:
            logger.debug(f"eth_maxPriorityFeePerGas unsupported, using gas price: {exc}")
            return await self.get_gas_price()
        return int(result, 16)

    async def call(self, to: str, data: str, from_address: Optional[str] = None) -> str:
        tx: Dict[str, Any] = {"to": to, "data": data}
        if from_address:
            tx["from"] = from_address
        result = await self._rpc_call("eth_call", [tx, "latest"])
        if not isinstance(result, str):
            raise RpcError("Invalid response for eth_call")
        return result

    async def read_contract(
        self,
        abi: Sequence[Dict[str, Any]],
        address: str,
        function_name: str,
        args: Optional[Sequence[Any]] = None,
    ) -> Any:
        """Call a view function and decode its outputs."""
        data = encode_function_call(abi, function_name, list(args or []))
        result = await self.call(address, data)
        if result in ("0x", ""):
            raise RpcError(f"Empty response calling {function_name} on {address}")
        return decode_function_result(abi, function_name, result)
