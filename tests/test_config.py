"""Tests for settings and the component factory."""

from decimal import Decimal

import pytest

from financefriend.config import get_settings, validate_all_settings
from financefriend.config.settings import AppSettings, StorageSettings
from financefriend.models.account import AccountType
from financefriend.models.forms import AccountForm, TransactionForm
from financefriend.models.transaction import TransactionType
from financefriend.orchestrator import create_app_components


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FINANCEFRIEND_STORAGE_BACKEND", raising=False)
        assert StorageSettings().backend == "sqlite"
        assert AppSettings().recent_transactions_limit == 4

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("FINANCEFRIEND_STORAGE_BACKEND", "memory")
        assert StorageSettings().backend == "memory"

    def test_invalid_backend(self, monkeypatch):
        monkeypatch.setenv("FINANCEFRIEND_STORAGE_BACKEND", "postgres")
        with pytest.raises(ValueError):
            StorageSettings()

    def test_log_level_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_validate_all_settings(self):
        results = validate_all_settings()
        assert results["storage"] is True
        assert results["app"] is True

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestCreateAppComponents:

    async def test_in_memory_session(self):
        account_flow, transaction_flow, overview_flow = create_app_components(use_storage=False)

        checking = await account_flow.create_account(
            AccountForm(name="Checking", balance_text="1000", type=AccountType.CHECKING)
        )
        await transaction_flow.submit_form(TransactionForm(
            title="Coffee",
            amount_text="5",
            type=TransactionType.EXPENSE,
            account_id=checking.id,
        ))

        overview = await overview_flow.balance_overview()
        assert overview.total_balance == Decimal("995")
        assert len(await overview_flow.recent_transactions()) == 1

    async def test_sqlite_backend(self, monkeypatch, tmp_path):
        database = tmp_path / "ledger.db"
        monkeypatch.setenv("FINANCEFRIEND_STORAGE_BACKEND", "sqlite")
        monkeypatch.setenv("FINANCEFRIEND_STORAGE_DATABASE_PATH", str(database))

        account_flow, _, _ = create_app_components()
        await account_flow.create_account(AccountForm(name="Savings", balance_text="10"))

        assert database.exists()
        assert [a.name for a in await account_flow.list_accounts()] == ["Savings"]
