"""Smart account adapters and the session that owns them."""

from .base import SmartAccount
from .session import AgentkitSession
from .signer import EthAccountSigner, UserOperationSigner
from .smart_account import BundlerSmartAccount

__all__ = [
    "AgentkitSession",
    "BundlerSmartAccount",
    "EthAccountSigner",
    "SmartAccount",
    "UserOperationSigner",
]
