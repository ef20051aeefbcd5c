from pathlib import Path
from typing import Any

from pydantic import Field
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
        """Normalise the account entry point signatures."""

        super().model_post_init(__context)

        for name in ("erc7579_execute_signature", "erc7579_execute_from_executor_signature"):
            value = getattr(self, name)
            if value != value.replace(" ", ""):
                object.__setattr__(self, name, value.replace(" ", ""))

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # ERC-4337
    erc4337_entrypoint_address: str = Field(
        default="0x0000000071727De22E5E9d8BAf0edAc6f37da032",
        description="EntryPoint v0.7 address used when hashing user operations",
    )
    chain_id: int = Field(default=1, ge=1, description="Chain ID used when hashing user operations")

    # ERC-7579 account entry points
    erc7579_execute_signature: str = Field(
        default="execute(bytes32,bytes)",
        description="Function signature of the account's execute entry point",
    )
    erc7579_execute_from_executor_signature: str = Field(
        default="executeFromExecutor(bytes32,bytes)",
        description="Function signature of the account's executor entry point",
    )

    # Session limits
    max_policies_per_session: int = Field(
        default=32,
        ge=1,
        description="Maximum number of policies per session and policy kind",
    )
    allow_unsafe_enable: bool = Field(
        default=True,
        description="Accept the UNSAFE_ENABLE signature mode",
    )
    require_enabled_signer_match: bool = Field(
        default=True,
        description="Require the use payload of an enable signature to name the enabled signer",
    )


# Global settings instance
settings = Settings()
