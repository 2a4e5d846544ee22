"""Unit tests for Settings."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from transfer_client.config import Settings


class TestSettingsDefaults:
    """Tests for default configuration values."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ["INITIAL_BALANCE", "SETTLEMENT_FAILURE_RATE", "LEDGER_CAPACITY", "STORAGE_BACKEND"]:
            monkeypatch.delenv(f"TRANSFER_{name}", raising=False)

        settings = Settings(_env_file=None)

        assert settings.initial_balance == Decimal("100000")
        assert settings.settlement_failure_rate == 0.1
        assert settings.settlement_delay_seconds == 1.0
        assert settings.ledger_capacity == 10
        assert settings.ledger_storage_key == "transactions"
        assert settings.pin_min_length == 4
        assert settings.storage_backend == "memory"


class TestSettingsFromEnvironment:
    """Tests for environment overrides."""

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRANSFER_INITIAL_BALANCE", "2500.50")
        monkeypatch.setenv("TRANSFER_SETTLEMENT_FAILURE_RATE", "0")
        monkeypatch.setenv("TRANSFER_STORAGE_BACKEND", "redis")

        settings = Settings(_env_file=None)

        assert settings.initial_balance == Decimal("2500.50")
        assert settings.settlement_failure_rate == 0.0
        assert settings.storage_backend == "redis"

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("TRANSFER_SETTLEMENT_FAILURE_RATE", "1.5"),
            ("TRANSFER_INITIAL_BALANCE", "-1"),
            ("TRANSFER_LEDGER_CAPACITY", "0"),
            ("TRANSFER_STORAGE_BACKEND", "sqlite"),
        ],
    )
    def test_rejects_invalid_values(self, monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
        monkeypatch.setenv(name, value)

        with pytest.raises(ValidationError):
            Settings(_env_file=None)
