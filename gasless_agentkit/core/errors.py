"""
Error Classification

Defines one error type per failure class an action can run into. Every
handler converts these into a human-readable sentence at its boundary, so
none of them ever reaches the agent as a raised exception.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of errors surfaced by actions."""

    VALIDATION = "validation"                  # Malformed address/amount/schema
    CAPABILITY_MISSING = "capability_missing"  # Value-moving action without an account
    SPONSOR_REJECTED = "sponsor_rejected"      # Paymaster/bundler refused the operation
    CHAIN_REVERT = "chain_revert"              # Execution reverted
    TIMEOUT = "timeout"                        # Confirmation not observed in time
    NETWORK = "network"                        # Transport-level failure
    QUOTE_INCOMPLETE = "quote_incomplete"      # Quote service returned unusable data


class RevertKind(str, Enum):
    """Recognised revert classes, matched on the revert reason text."""

    INSUFFICIENT_ALLOWANCE = "insufficient_allowance"
    INSUFFICIENT_LIQUIDITY = "insufficient_liquidity"
    AMOUNT_TOO_SMALL = "amount_too_small"
    UNKNOWN = "unknown"


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory
    suggested_action: Optional[str] = None
    provider: Optional[str] = None
    operation_handle: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class AgentkitError(Exception):
    """Base class for every classified action failure."""

    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext(category=self.category)

    def describe(self) -> str:
        """Full sentence for the agent, including any suggested action."""
        if self.context.suggested_action:
            return f"{self.message}\n{self.context.suggested_action}"
        return self.message


class ValidationError(AgentkitError):
    """Malformed address, amount or action input."""

    category = ErrorCategory.VALIDATION

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(
            message,
            context=ErrorContext(
                category=ErrorCategory.VALIDATION,
                details={"field": field_name} if field_name else {},
            ),
        )


class CapabilityMissing(AgentkitError):
    """A value-moving action was invoked without a smart account."""

    category = ErrorCategory.CAPABILITY_MISSING

    def __init__(self, action_name: str):
        super().__init__(
            f"Unable to run Action: {action_name}. A Smart Account is required. "
            "Please configure the session with a wallet to run this action.",
            context=ErrorContext(
                category=ErrorCategory.CAPABILITY_MISSING,
                details={"action": action_name},
            ),
        )
        self.action_name = action_name


class SponsorRejected(AgentkitError):
    """The paymaster or bundler refused the operation; message kept verbatim."""

    category = ErrorCategory.SPONSOR_REJECTED

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(
            message,
            context=ErrorContext(
                category=ErrorCategory.SPONSOR_REJECTED,
                provider=provider,
                suggested_action=None,
            ),
        )


_REMEDIATION: Dict[RevertKind, str] = {
    RevertKind.INSUFFICIENT_ALLOWANCE: (
        "Token allowance error. You need to approve the contract to spend your tokens.\n"
        'Please try again with "approveMax: true" parameter to automatically approve token spending.'
    ),
    RevertKind.INSUFFICIENT_LIQUIDITY: (
        "Insufficient liquidity or no route found between these tokens."
    ),
    RevertKind.AMOUNT_TOO_SMALL: (
        "The amount is too small. Please try a larger amount."
    ),
}


class ChainRevert(AgentkitError):
    """Execution reverted; `kind` tells which remediation applies."""

    category = ErrorCategory.CHAIN_REVERT

    def __init__(self, message: str, kind: RevertKind = RevertKind.UNKNOWN):
        super().__init__(
            message,
            context=ErrorContext(
                category=ErrorCategory.CHAIN_REVERT,
                suggested_action=_REMEDIATION.get(kind),
                details={"revert_reason": message, "kind": kind.value},
            ),
        )
        self.kind = kind

    @property
    def remediation(self) -> Optional[str]:
        return _REMEDIATION.get(self.kind)


class ConfirmationTimeout(AgentkitError):
    """Confirmation not observed within the bound. Reported as pending, not failed."""

    category = ErrorCategory.TIMEOUT

    def __init__(self, operation_handle: str, max_duration_ms: int):
        super().__init__(
            f"Exceeded maximum duration ({max_duration_ms / 1000:g} sec) waiting for transaction",
            context=ErrorContext(
                category=ErrorCategory.TIMEOUT,
                operation_handle=operation_handle,
                suggested_action="You can check the status again later with a longer maxDuration.",
            ),
        )


class NetworkError(AgentkitError):
    """Transport-level failure calling an external service."""

    category = ErrorCategory.NETWORK

    def __init__(self, message: str = "Network error", provider: Optional[str] = None):
        super().__init__(
            message,
            context=ErrorContext(
                category=ErrorCategory.NETWORK,
                provider=provider,
            ),
        )


class QuoteIncomplete(AgentkitError):
    """A quote service returned data that cannot be executed."""

    category = ErrorCategory.QUOTE_INCOMPLETE

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(
            message,
            context=ErrorContext(
                category=ErrorCategory.QUOTE_INCOMPLETE,
                provider=provider,
            ),
        )


def classify_revert(text: Optional[str]) -> Optional[ChainRevert]:
    """
    Match revert or quote error text against the known revert classes.

    Returns None when the text does not look like a revert at all.
    """
    if not text:
        return None
    message = text.lower()

    allowance_patterns = [
        "transfer amount exceeds allowance",
        "insufficient allowance",
    ]
    if any(p in message for p in allowance_patterns):
        return ChainRevert(text, RevertKind.INSUFFICIENT_ALLOWANCE)

    liquidity_patterns = ["insufficient liquidity", "no route found"]
    if any(p in message for p in liquidity_patterns):
        return ChainRevert(text, RevertKind.INSUFFICIENT_LIQUIDITY)

    small_patterns = [
        "amount too small",
        "minimum trade amount is",
        "can not estimate with 0 amount",
    ]
    if any(p in message for p in small_patterns):
        return ChainRevert(text, RevertKind.AMOUNT_TOO_SMALL)

    revert_patterns = ["execution reverted", "revert", "missing response"]
    if any(p in message for p in revert_patterns):
        return ChainRevert(text, RevertKind.UNKNOWN)

    return None


def classify_submission_error(text: str, provider: Optional[str] = None) -> AgentkitError:
    """Classify a sponsor-reported error: a recognised revert, or a plain rejection."""
    revert = classify_revert(text)
    if revert is not None:
        return revert
    return SponsorRejected(text, provider=provider)


def describe_exception(error: BaseException) -> str:
    """Message text for any exception, preferring the classified description."""
    if isinstance(error, AgentkitError):
        return error.describe()
    return str(error) or error.__class__.__name__
