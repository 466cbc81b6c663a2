"""Tests for utils.runtime_config module."""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from lnbits_wallet_manager.client import WalletManagerConfig
from lnbits_wallet_manager.utils.runtime_config import RuntimeConfigManager

BASE_URL = "http://localhost:5000/api/v1"


class TestUpdateConfiguration:
    async def test_update_configuration_success(self, config_manager):
        result = await config_manager.update_configuration(
            base_url="https://my.lnbits.com/api/v1",
            timeout=10,
        )
        assert result["success"] is True
        assert "my.lnbits.com" in result["config"]["base_url"]
        assert result["config"]["timeout"] == 10

    async def test_update_configuration_rollback_on_invalid(self, config_manager):
        original_url = str(config_manager.config.base_url)
        with pytest.raises(ValidationError):
            await config_manager.update_configuration(base_url="not-a-url")
        assert str(config_manager.config.base_url) == original_url

    async def test_update_replaces_client(self, config_manager):
        client1 = await config_manager.get_client()
        await config_manager.update_configuration(timeout=5)
        client2 = await config_manager.get_client()
        assert client1 is not client2
        assert client2.config.timeout == 5


class TestSafeConfig:
    def test_safe_config_masks_api_key(self):
        mgr = RuntimeConfigManager(
            WalletManagerConfig(base_url=BASE_URL, api_key="secret")
        )
        cfg = mgr.get_configuration_status()["config"]
        assert cfg["api_key"] == "***MASKED***"
        assert "secret" not in str(cfg)


class TestConfigChangedCallback:
    async def test_on_config_changed_callback_fires(self, config_manager):
        callback = AsyncMock()
        config_manager.on_config_changed = callback
        await config_manager.update_configuration(base_url="https://example.com/api/v1")
        callback.assert_awaited_once()


class TestGetClient:
    async def test_get_client_creates_once(self, config_manager):
        client1 = await config_manager.get_client()
        client2 = await config_manager.get_client()
        assert client1 is client2


class TestTestConfiguration:
    async def test_success(self, httpx_mock, config_manager):
        httpx_mock.add_response(
            url=f"{BASE_URL}/wallet",
            json=[
                {"id": "w1", "name": "a", "balance_msat": 0},
                {"id": "w2", "name": "b", "balance_msat": 0},
            ],
        )
        result = await config_manager.test_configuration("abc123")
        await config_manager.close()
        assert result["success"] is True
        assert result["wallet_count"] == 2

    async def test_failure_reported(self, httpx_mock, config_manager):
        httpx_mock.add_response(url=f"{BASE_URL}/wallet", status_code=403)
        result = await config_manager.test_configuration("abc123")
        await config_manager.close()
        assert result["success"] is False
        assert "403" in result["error"]

    async def test_missing_key_reported(self, config_manager):
        result = await config_manager.test_configuration(None)
        assert result["success"] is False
