from gasless_agentkit.core.errors import (
    CapabilityMissing,
    ChainRevert,
    ConfirmationTimeout,
    ErrorCategory,
    NetworkError,
    RevertKind,
    SponsorRejected,
    classify_revert,
    classify_submission_error,
    describe_exception,
)


def test_classify_revert_allowance():
    revert = classify_revert("execution reverted: ERC20: transfer amount exceeds allowance")
    assert isinstance(revert, ChainRevert)
    assert revert.kind == RevertKind.INSUFFICIENT_ALLOWANCE
    assert "approveMax: true" in revert.remediation


def test_classify_revert_liquidity_and_small_amount():
    assert classify_revert("Insufficient liquidity for this trade").kind == RevertKind.INSUFFICIENT_LIQUIDITY
    assert classify_revert("No route found").kind == RevertKind.INSUFFICIENT_LIQUIDITY
    assert classify_revert("Minimum trade amount is 10 USD").kind == RevertKind.AMOUNT_TOO_SMALL


def test_classify_revert_generic_and_unrelated():
    generic = classify_revert("UserOperation reverted during simulation")
    assert generic.kind == RevertKind.UNKNOWN
    assert generic.remediation is None
    assert classify_revert("paymaster quota exceeded") is None
    assert classify_revert("") is None


def test_submission_error_kept_verbatim():
    error = classify_submission_error("AA31 paymaster deposit too low", provider="sponsor")
    assert isinstance(error, SponsorRejected)
    assert error.message == "AA31 paymaster deposit too low"
    assert error.context.provider == "sponsor"


def test_capability_missing_message():
    error = CapabilityMissing("smart_swap")
    assert error.category == ErrorCategory.CAPABILITY_MISSING
    assert error.message.startswith("Unable to run Action: smart_swap. A Smart Account is required.")


def test_confirmation_timeout_message_in_seconds():
    error = ConfirmationTimeout("0xabc", 15000)
    assert error.message == "Exceeded maximum duration (15 sec) waiting for transaction"


def test_describe_exception_includes_remediation():
    revert = ChainRevert("transfer amount exceeds allowance", RevertKind.INSUFFICIENT_ALLOWANCE)
    assert "approve the contract" in describe_exception(revert)
    assert describe_exception(NetworkError("boom")) == "boom"
    assert describe_exception(RuntimeError()) == "RuntimeError"
