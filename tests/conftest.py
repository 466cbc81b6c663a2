"""Shared fixtures for tests."""

import pytest

from lnbits_wallet_manager.client import WalletApiClient, WalletManagerConfig
from lnbits_wallet_manager.session import WalletSession
from lnbits_wallet_manager.utils.runtime_config import RuntimeConfigManager

BASE_URL = "http://localhost:5000/api/v1"


@pytest.fixture
def config() -> WalletManagerConfig:
    return WalletManagerConfig(base_url=BASE_URL, api_key=None)


@pytest.fixture
async def client(config):
    async with WalletApiClient(config) as c:
        yield c


@pytest.fixture
def wallet_payload() -> dict:
    return {
        "id": "w1",
        "name": "Test",
        "balance_msat": 5000,
        "adminkey": "A",
        "inkey": "I",
    }


@pytest.fixture
def config_manager(config) -> RuntimeConfigManager:
    return RuntimeConfigManager(config)


@pytest.fixture
async def session(config_manager):
    yield WalletSession(config_manager)
    await config_manager.close()
