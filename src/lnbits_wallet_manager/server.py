"""LNbits Wallet Manager MCP server."""

import asyncio
import sys
from typing import Any, Dict, Optional

import pydantic
import structlog
from mcp import types
from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.types import Tool

from .client import LNbitsError, WalletManagerConfig
from .session import WalletSession
from .tools import TOOL_NAMES, WalletTools
from .utils.runtime_config import RuntimeConfigManager

logger = structlog.get_logger(__name__)


class WalletManagerServer:
    """Exposes wallet listing, creation, invoicing and payment as MCP tools."""

    def __init__(self, config: Optional[WalletManagerConfig] = None):
        self.config = config or WalletManagerConfig()
        self.server = Server("lnbits-wallet-manager")

        self.config_manager = RuntimeConfigManager(self.config)
        self.session = WalletSession(self.config_manager)
        self.tools = WalletTools(self.config_manager, self.session)

        # Reload wallets against the new endpoint
        self.config_manager.on_config_changed = self._on_config_changed

        self._register_handlers()

    async def _on_config_changed(self) -> None:
        if self.session.api_key is None:
            return
        try:
            await self.session.refresh_wallets()
        except LNbitsError as e:
            logger.warning("Wallet reload after reconfiguration failed", error=str(e))

    async def _connect_from_config(self) -> None:
        if not self.config.api_key:
            return
        try:
            await self.session.connect(self.config.api_key)
        except LNbitsError as e:
            logger.warning("Initial connection failed", error=str(e))

    # ------------------------------------------------------------------
    # MCP handlers
    # ------------------------------------------------------------------

    def _register_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return self.tools.get_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: Dict[str, Any]) -> list[types.TextContent]:
            return [types.TextContent(type="text", text=await self.handle_call(name, arguments))]

    async def handle_call(self, name: str, arguments: Optional[Dict[str, Any]]) -> str:
        try:
            logger.info("call_tool", tool=name)
            if name not in TOOL_NAMES:
                return f"Unknown tool: {name}"
            return await self.tools.call_tool(name, arguments or {})
        except LNbitsError as e:
            logger.error("LNbits error", error=str(e), tool=name, status_code=e.status_code)
            return f"LNbits error: {e}"
        except pydantic.ValidationError as e:
            logger.error("Invalid arguments", error=str(e), tool=name)
            return f"Invalid arguments: {e}"
        except Exception as e:
            logger.error("Unexpected error", error=str(e), tool=name, exc_info=True)
            return f"Error: {e}"

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> None:
        logger.info("Starting LNbits wallet manager", base_url=str(self.config.base_url))
        await self._connect_from_config()
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name="lnbits-wallet-manager",
                        server_version="0.1.0",
                        capabilities=types.ServerCapabilities(
                            tools=types.ToolsCapability(listChanged=False),
                        ),
                    ),
                )
        finally:
            await self.config_manager.close()


# ------------------------------------------------------------------
# Entry points
# ------------------------------------------------------------------


async def async_main() -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    try:
        server = WalletManagerServer()
        await server.run()
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
    except Exception as e:
        logger.error("Server error", error=str(e), exc_info=True)
        sys.exit(1)


def main() -> None:
    """Synchronous entry point for console script."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
