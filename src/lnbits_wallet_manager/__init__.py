"""Async client and MCP server for managing LNbits wallets."""

from .client import (
    ApiError,
    InvalidCredential,
    LNbitsError,
    NetworkError,
    ValidationError,
    WalletApiClient,
    WalletManagerConfig,
    normalize_wallets,
)
from .models.schemas import Direction, Invoice, PaymentReceipt, Wallet
from .session import WalletSession

__all__ = [
    "ApiError",
    "Direction",
    "InvalidCredential",
    "Invoice",
    "LNbitsError",
    "NetworkError",
    "PaymentReceipt",
    "ValidationError",
    "Wallet",
    "WalletApiClient",
    "WalletManagerConfig",
    "WalletSession",
    "normalize_wallets",
]
