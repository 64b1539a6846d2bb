"""Generic contract actions: token metadata, view calls, calldata encoding and raw sends."""

import json
import logging
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ....providers.rpc import encode_function_call
from ....services.address import is_valid_evm_address
from ....services.tokens import fetch_token_details
from ...errors import describe_exception
from ...execution.models import TransactionRequest
from ...execution.submitter import TransactionSubmitter
from ..registry import ActionDescriptor, ResourceRequirement

logger = logging.getLogger(__name__)


GET_TOKEN_DETAILS_PROMPT = """
This tool will fetch details about an ERC20 token including:
- Token name
- Token symbol
- Decimals
- Contract address
- Chain ID

Provide the token contract address to get its details.
"""

READ_CONTRACT_PROMPT = """
Reads data from a function on a smart contract without sending a transaction (view/pure call).
Use this to fetch information stored on a contract, such as balances, owners or configuration.

Input Parameters:
  - contractAddress (string, required): The address of the contract to read from.
  - abiString (string, required): A JSON array with the contract ABI, or at least the fragment
    defining the function. Example: '[{"inputs":[],"name":"symbol","outputs":[{"name":"","type":"string"}],"stateMutability":"view","type":"function"}]'
  - functionName (string, required): The exact name of the view or pure function. Example: "symbol"
  - argsString (string, optional): The arguments as a JSON array, in ABI order. Example: '["0xSomeAddress"]'

Output: "Result: <value>". Structs and arrays are JSON encoded.
"""

ENCODE_FUNCTION_DATA_PROMPT = """
Encodes a contract function call into hexadecimal calldata using the provided ABI, function name and arguments.
Use this tool to prepare the 'data' field for the 'send_transaction' action.

Input Parameters:
  - abiString (string, required): The contract ABI as a JSON array.
  - functionName (string, required): The exact name of the function to call. Example: "transfer"
  - argsString (string, optional): The arguments as a JSON array, in ABI order.
    Example: '["0xRecipientAddress", "1000000000000000000"]'

Output: "Encoded Data: 0x..."
"""

SEND_TRANSACTION_PROMPT = """
Sends a gasless transaction from the smart account to interact with a contract or transfer native currency.

Input Parameters:
  - to (string, required): The destination address (contract or recipient). Must be a valid address (0x...).
  - data (string, optional): Encoded function data. Use 'encode_function_data' to generate it.
  - value (string, optional): Amount of native currency in wei. Defaults to "0".

Note: This action only submits the transaction. Use 'check_transaction_status' with the returned
User Operation Hash to check whether it has been confirmed.
"""


def _require_json(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        json.loads(value)
    except ValueError as exc:
        raise ValueError("Must be a valid JSON string") from exc
    return value


def _load_abi(abi_string: str) -> List[dict]:
    abi = json.loads(abi_string)
    if isinstance(abi, dict):
        abi = [abi]
    if not isinstance(abi, list):
        raise ValueError("ABI must be a JSON array of fragments")
    return abi


def _load_args(args_string: Optional[str]) -> List[Any]:
    if not args_string:
        return []
    args = json.loads(args_string)
    if not isinstance(args, list):
        raise ValueError("Arguments must be a JSON array")
    return args


def _format_result(result: Any) -> str:
    if isinstance(result, (list, tuple, dict)):
        return json.dumps(result, default=str)
    return str(result)


class GetTokenDetailsInput(BaseModel):
    """Instructions for getting token details"""

    model_config = ConfigDict(populate_by_name=True)

    token_address: str = Field(alias="tokenAddress", description="The ERC20 token contract address")


class ReadContractInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    contract_address: str = Field(alias="contractAddress", description="The contract to read from")
    abi_string: str = Field(
        alias="abiString",
        description="The contract ABI fragment (or full ABI) as a JSON string array",
    )
    function_name: str = Field(alias="functionName", description="The view or pure function to call")
    args_string: Optional[str] = Field(
        default=None,
        alias="argsString",
        description="The arguments as a JSON string array. Omit or use '[]' for no arguments",
    )

    @field_validator("contract_address")
    @classmethod
    def check_address(cls, value: str) -> str:
        if not is_valid_evm_address(value):
            raise ValueError("Invalid contract address format.")
        return value

    @field_validator("abi_string", "args_string")
    @classmethod
    def check_json(cls, value: Optional[str]) -> Optional[str]:
        return _require_json(value)


class EncodeFunctionDataInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    abi_string: str = Field(alias="abiString", description="The contract ABI as a JSON string array")
    function_name: str = Field(alias="functionName", description="The name of the function to encode")
    args_string: Optional[str] = Field(
        default=None,
        alias="argsString",
        description="The arguments for the function as a JSON string array",
    )

    @field_validator("abi_string", "args_string")
    @classmethod
    def check_json(cls, value: Optional[str]) -> Optional[str]:
        return _require_json(value)


class SendTransactionInput(BaseModel):
    to: str = Field(pattern=r"^0x[a-fA-F0-9]{40}$", description="Destination address")
    data: Optional[str] = Field(
        default=None,
        pattern=r"^0x[a-fA-F0-9]*$",
        description="Hex encoded calldata",
    )
    value: Optional[str] = Field(
        default=None,
        pattern=r"^\d+$",
        description="Native currency amount in wei",
    )


async def get_token_details(read_client, args: GetTokenDetailsInput) -> str:
    try:
        details = await fetch_token_details(read_client, args.token_address)
        return f"Token Details:\n{details.describe()}"
    except Exception as exc:
        logger.error(f"Error getting token details: {exc}")
        return f"Error getting token details: {describe_exception(exc)}"


async def read_contract(read_client, args: ReadContractInput) -> str:
    try:
        abi = _load_abi(args.abi_string)
        call_args = _load_args(getattr(args, "args_string", None))
        result = await read_client.read_contract(abi, args.contract_address, args.function_name, call_args)
        return f"Result: {_format_result(result)}"
    except Exception as exc:
        logger.error(f"Error in read_contract: {exc}")
        return f"Error in read_contract: {describe_exception(exc)}"


async def encode_function_data(args: EncodeFunctionDataInput) -> str:
    try:
        abi = _load_abi(args.abi_string)
        call_args = _load_args(getattr(args, "args_string", None))
        return f"Encoded Data: {encode_function_call(abi, args.function_name, call_args)}"
    except Exception as exc:
        logger.error(f"Error in encode_function_data: {exc}")
        return f"Error: Failed to encode function data: {describe_exception(exc)}"


async def send_transaction(account, args: SendTransactionInput) -> str:
    try:
        request = TransactionRequest(
            to=args.to,
            data=getattr(args, "data", None) or "0x",
            value=int(getattr(args, "value", None) or 0),
        )
        result = await TransactionSubmitter().submit(account, request)
        if not result.success:
            return f"Error: Failed to send transaction: {result.error_message}"
        return result.message
    except Exception as exc:
        logger.error(f"Error in send_transaction: {exc}")
        return f"Error: Failed to send transaction: {describe_exception(exc)}"


GET_TOKEN_DETAILS = ActionDescriptor(
    name="get_token_details",
    description=GET_TOKEN_DETAILS_PROMPT,
    input_schema=GetTokenDetailsInput,
    resource=ResourceRequirement.READ_ONLY_CLIENT,
    handler=get_token_details,
)

READ_CONTRACT = ActionDescriptor(
    name="read_contract",
    description=READ_CONTRACT_PROMPT,
    input_schema=ReadContractInput,
    resource=ResourceRequirement.READ_ONLY_CLIENT,
    handler=read_contract,
)

ENCODE_FUNCTION_DATA = ActionDescriptor(
    name="encode_function_data",
    description=ENCODE_FUNCTION_DATA_PROMPT,
    input_schema=EncodeFunctionDataInput,
    resource=ResourceRequirement.NONE,
    handler=encode_function_data,
)

SEND_TRANSACTION = ActionDescriptor(
    name="send_transaction",
    description=SEND_TRANSACTION_PROMPT,
    input_schema=SendTransactionInput,
    resource=ResourceRequirement.VALUE_ACCOUNT,
    handler=send_transaction,
)
