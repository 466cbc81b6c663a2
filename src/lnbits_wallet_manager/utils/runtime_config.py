"""Runtime configuration for the wallet API connection."""

from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

from ..client import LNbitsError, WalletApiClient, WalletManagerConfig
from .auth import mask_key

logger = structlog.get_logger(__name__)


class RuntimeConfigManager:
    """Holds the active config and the single client built from it."""

    def __init__(self, config: Optional[WalletManagerConfig] = None):
        self.config = config or WalletManagerConfig()
        self._client: Optional[WalletApiClient] = None
        self.on_config_changed: Optional[Callable[[], Awaitable[None]]] = None

    async def get_client(self) -> WalletApiClient:
        if self._client is None:
            self._client = WalletApiClient(self.config)
        return self._client

    async def update_configuration(self, **changes: Any) -> Dict[str, Any]:
        """Apply *changes* to the config.

        Raises pydantic's ``ValidationError`` and keeps the old config when
        the merged values are invalid.
        """
        merged = self.config.model_dump()
        merged.update({k: v for k, v in changes.items() if v is not None})
        new_config = WalletManagerConfig(**merged)

        await self.close()
        self.config = new_config
        logger.info("Configuration updated", base_url=str(new_config.base_url))

        if self.on_config_changed is not None:
            await self.on_config_changed()

        return {
            "success": True,
            "message": "Configuration updated",
            "config": self._safe_config(),
        }

    def get_configuration_status(self) -> Dict[str, Any]:
        return {"config": self._safe_config()}

    async def test_configuration(self, credential: Optional[str]) -> Dict[str, Any]:
        """List wallets with *credential* and report the outcome."""
        client = await self.get_client()
        try:
            wallets = await client.list_wallets(credential)
        except LNbitsError as e:
            logger.warning("Connection test failed", error=str(e))
            return {
                "success": False,
                "message": "Connection test failed",
                "error": str(e),
            }
        return {
            "success": True,
            "message": f"Connected to {self.config.base_url}",
            "wallet_count": len(wallets),
        }

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _safe_config(self) -> Dict[str, Any]:
        return {
            "base_url": str(self.config.base_url),
            "timeout": self.config.timeout,
            "api_key": mask_key(self.config.api_key),
        }
