from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Normalize hex secrets loaded from the environment."""

        super().model_post_init(__context)

        if self.private_key and not self.private_key.startswith("0x"):
            object.__setattr__(self, "private_key", f"0x{self.private_key}")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Chain
    chain_id: int = Field(default=8453, description="Chain the smart account operates on")
    rpc_url: str = Field(
        default="",
        description="Override the public RPC URL for the configured chain",
    )
    request_timeout_seconds: int = Field(default=20, description="HTTP request timeout")

    # Smart account / sponsorship
    gasless_api_key: str = Field(
        default="",
        description="Paymaster API key",
        validation_alias=AliasChoices("gasless_api_key", "paymaster_api_key"),
    )
    private_key: str = Field(default="", description="Signer private key for the smart account owner")
    smart_account_address: str = Field(
        default="",
        description="Deployed smart account address controlled by the signer",
    )
    bundler_url_template: str = Field(
        default="https://bundler.0xgasless.com/{chain_id}",
        description="Bundler JSON-RPC endpoint; {chain_id} is substituted",
    )
    paymaster_url_template: str = Field(
        default="https://paymaster.0xgasless.com/v1/{chain_id}/rpc/{api_key}",
        description="Paymaster JSON-RPC endpoint; {chain_id} and {api_key} are substituted",
    )
    paymaster_rpc_method: str = Field(
        default="pm_sponsorUserOperation",
        description="Paymaster JSON-RPC method used for sponsorship",
    )
    entry_point_address: str = Field(
        default="0x5FF137D4b0FDCD49DcA30c7CF57E578a026d2789",
        description="ERC-4337 EntryPoint contract",
    )
    account_execute_signature: str = Field(
        default="execute(address,uint256,bytes)",
        description="Smart account execute function used to wrap calls",
    )
    account_execute_selector: str = Field(
        default="",
        description="Optional 4-byte selector override for the execute function",
    )

    # Quote services
    debridge_api_base_url: str = Field(
        default="https://dln.debridge.finance/v1.0",
        description="deBridge DLN API base URL",
    )
    debridge_referral_code: str = Field(default="31676", description="deBridge referral code")

    # Confirmation tracking
    confirmation_interval_ms: int = Field(default=5000, ge=1, description="Receipt polling interval")
    confirmation_max_duration_ms: int = Field(default=30000, ge=1, description="Maximum wait for a receipt")
    confirmation_blocks: int = Field(default=1, ge=1, description="Default confirmation depth")

    # Flows
    bridge_wait_for_preliminary_approval: bool = Field(
        default=True,
        description="Wait for the preliminary bridge approval to confirm before re-quoting",
    )
    max_disperse_recipients: int = Field(default=50, ge=1, description="Maximum recipients per batch")

    @property
    def has_wallet(self) -> bool:
        return bool(self.private_key and self.gasless_api_key and self.smart_account_address)

    @property
    def bundler_url(self) -> str:
        return self.bundler_url_template.format(chain_id=self.chain_id)

    @property
    def paymaster_url(self) -> str:
        return self.paymaster_url_template.format(
            chain_id=self.chain_id,
            api_key=self.gasless_api_key,
        )


# Global settings instance
settings = Settings()
