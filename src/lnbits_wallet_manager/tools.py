"""MCP tools that drive a WalletSession."""

from __future__ import annotations

import json
from typing import Any

from mcp.types import Tool

from .models.schemas import ConfigureRequest
from .session import WalletSession, render_wallet
from .utils.runtime_config import RuntimeConfigManager

# ─── Tool definitions ────────────────────────────────────────────────

TOOL_DEFINITIONS: list[Tool] = [
    Tool(
        name="connect",
        description=(
            "Connect with an LNbits admin key and load its wallets. "
            "The key is kept in memory only."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "api_key": {
                    "type": "string",
                    "description": "LNbits admin key",
                },
            },
            "required": ["api_key"],
        },
    ),
    Tool(
        name="list_wallets",
        description=(
            "Reload wallets for the connected key. Balances are in msats "
            "(balance_sats is provided too). Keys are masked."
        ),
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="create_wallet",
        description="Create a new wallet and add it to the wallet list.",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Wallet name"},
            },
            "required": ["name"],
        },
    ),
    Tool(
        name="create_invoice",
        description=(
            "Create a receive invoice on a wallet using its invoice key. "
            "The invoice becomes the current invoice. Amount is in sats."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "wallet_id": {"type": "string", "description": "Wallet ID"},
                "amount_sats": {
                    "type": "integer",
                    "description": "Amount in satoshis",
                    "minimum": 1,
                },
                "memo": {
                    "type": "string",
                    "description": "Optional memo (defaults to 'Invoice from <wallet_id>')",
                },
            },
            "required": ["wallet_id", "amount_sats"],
        },
    ),
    Tool(
        name="pay_current_invoice",
        description=(
            "Pay the current invoice from a wallet using its admin key, "
            "then reload wallet balances."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "wallet_id": {"type": "string", "description": "Paying wallet ID"},
            },
            "required": ["wallet_id"],
        },
    ),
    Tool(
        name="get_state",
        description="Show wallets, current invoice and the last error.",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="configure",
        description="Change the LNbits API base URL or timeout at runtime.",
        inputSchema={
            "type": "object",
            "properties": {
                "base_url": {
                    "type": "string",
                    "description": "Base URL (e.g. http://localhost:5000/api/v1)",
                },
                "timeout": {
                    "type": "integer",
                    "description": "Request timeout in seconds",
                    "minimum": 1,
                    "maximum": 300,
                },
            },
        },
    ),
    Tool(
        name="get_configuration",
        description="Show the current connection configuration with keys masked.",
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="test_connection",
        description="Check that the connected key can list wallets.",
        inputSchema={"type": "object", "properties": {}},
    ),
]

TOOL_NAMES: set[str] = {t.name for t in TOOL_DEFINITIONS}


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, default=str)


class WalletTools:
    """Translates tool calls into session calls and renders the results."""

    def __init__(self, config_manager: RuntimeConfigManager, session: WalletSession):
        self._config_manager = config_manager
        self._session = session

    @staticmethod
    def get_tools() -> list[Tool]:
        return list(TOOL_DEFINITIONS)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Dispatch a tool call. Returns a text string."""
        if name == "connect":
            return await self._connect(arguments)
        if name == "list_wallets":
            return await self._list_wallets()
        if name == "create_wallet":
            return await self._create_wallet(arguments)
        if name == "create_invoice":
            return await self._create_invoice(arguments)
        if name == "pay_current_invoice":
            return await self._pay_current_invoice(arguments)
        if name == "get_state":
            return _dumps(self._session.snapshot())
        if name == "configure":
            return await self._configure(arguments)
        if name == "get_configuration":
            return _dumps(self._config_manager.get_configuration_status())
        if name == "test_connection":
            return await self._test_connection()
        raise ValueError(f"Unknown tool: {name}")

    # ─── Handlers ──────────────────────────────────────────────────

    async def _connect(self, arguments: dict[str, Any]) -> str:
        wallets = await self._session.connect(arguments["api_key"])
        return _dumps({"wallets": [render_wallet(w) for w in wallets]})

    async def _list_wallets(self) -> str:
        wallets = await self._session.refresh_wallets()
        return _dumps({"wallets": [render_wallet(w) for w in wallets]})

    async def _create_wallet(self, arguments: dict[str, Any]) -> str:
        wallet = await self._session.create_wallet(arguments["name"])
        return _dumps(render_wallet(wallet))

    async def _create_invoice(self, arguments: dict[str, Any]) -> str:
        invoice = await self._session.create_invoice(
            arguments["wallet_id"],
            arguments["amount_sats"],
            arguments.get("memo"),
        )
        result = invoice.model_dump(mode="json", exclude_none=True)
        result["lightning_uri"] = invoice.lightning_uri
        return _dumps(result)

    async def _pay_current_invoice(self, arguments: dict[str, Any]) -> str:
        receipt = await self._session.pay_current_invoice(arguments["wallet_id"])
        return _dumps({
            "success": True,
            "receipt": receipt.model_dump(mode="json", exclude_none=True),
            "error": self._session.error,
            "wallets": [render_wallet(w) for w in self._session.wallets],
        })

    async def _configure(self, arguments: dict[str, Any]) -> str:
        request = ConfigureRequest(**arguments)
        result = await self._config_manager.update_configuration(**request.changes())
        return _dumps(result)

    async def _test_connection(self) -> str:
        result = await self._config_manager.test_configuration(self._session.api_key)
        return _dumps(result)
