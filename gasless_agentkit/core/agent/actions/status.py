"""check_transaction_status: run a ConfirmationTracker with the caller's parameters."""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ...errors import describe_exception
from ...execution.tracker import format_status, wait_for_transaction
from ..registry import ActionDescriptor, ResourceRequirement

logger = logging.getLogger(__name__)


CHECK_TRANSACTION_PROMPT = """
This tool checks the status of a previously submitted transaction using its User Operation Hash.
It will attempt to get the transaction receipt and confirmation status.

Required parameters:
- userOpHash: The User Operation Hash returned when the transaction was submitted
- confirmations: (Optional) Number of block confirmations to wait for (default: 1)
- maxDuration: (Optional) Maximum time to wait in milliseconds (default: 30000)
- interval: (Optional) How often to check status in milliseconds (default: 5000)
"""


class CheckTransactionInput(BaseModel):
    """Instructions for checking transaction status"""

    model_config = ConfigDict(populate_by_name=True)

    user_op_hash: str = Field(alias="userOpHash", description="The User Operation Hash to check")
    confirmations: Optional[int] = Field(
        default=None,
        ge=1,
        description="Number of block confirmations to wait for (default: 1)",
    )
    max_duration: Optional[int] = Field(
        default=None,
        alias="maxDuration",
        gt=0,
        description="Maximum time to wait in milliseconds (default: 30000)",
    )
    interval: Optional[int] = Field(
        default=None,
        gt=0,
        description="How often to check status in milliseconds (default: 5000)",
    )


async def check_transaction_status(account, args: CheckTransactionInput) -> str:
    try:
        status = await wait_for_transaction(
            account,
            args.user_op_hash,
            confirmations=getattr(args, "confirmations", None),
            max_duration_ms=getattr(args, "max_duration", None),
            interval_ms=getattr(args, "interval", None),
        )
        return format_status(status)
    except Exception as exc:
        logger.error(f"Error checking transaction status: {exc}")
        return f"Error checking transaction status: {describe_exception(exc)}"


CHECK_TRANSACTION_STATUS = ActionDescriptor(
    name="check_transaction_status",
    description=CHECK_TRANSACTION_PROMPT,
    input_schema=CheckTransactionInput,
    resource=ResourceRequirement.VALUE_ACCOUNT,
    handler=check_transaction_status,
)
