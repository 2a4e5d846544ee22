from decimal import Decimal
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRANSFER_",
        case_sensitive=False,
    )

    initial_balance: Decimal = Field(default=Decimal("100000"), ge=0)

    # Settlement stub
    settlement_delay_seconds: float = Field(default=1.0, ge=0)
    settlement_failure_rate: float = Field(default=0.1, ge=0, le=1)

    # Transaction history
    storage_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    ledger_storage_key: str = "transactions"
    ledger_capacity: int = Field(default=10, gt=0)

    # Authentication
    pin_min_length: int = Field(default=4, gt=0)
    biometric_prompt: str = "Authenticate to send money"

    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "console"

    metrics_enabled: bool = False
    metrics_host: str = "127.0.0.1"
    metrics_port: int = 9090


settings = Settings()
