"""Pydantic models for LNbits wallet API payloads and tool input."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, Field, HttpUrl


class Direction(str, Enum):
    """Polarity of a ``/payments`` request."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"

    @property
    def out(self) -> bool:
        """Value of the service's ``out`` flag for this direction."""
        return self is Direction.OUTGOING


class Wallet(BaseModel):
    """A wallet as returned by the service. Read-only per fetch."""

    id: str
    name: str
    balance_msat: int = Field(
        ge=0,
        validation_alias=AliasChoices("balance_msat", "balance"),
        description="Balance in millisatoshi",
    )
    adminkey: Optional[str] = Field(default=None, description="Send + receive key")
    inkey: Optional[str] = Field(default=None, description="Receive-only key")

    model_config = {"extra": "allow", "frozen": True}

    @property
    def balance_sats(self) -> int:
        return self.balance_msat // 1000


class Invoice(BaseModel):
    """An incoming payment request created by the service."""

    bolt11: str = Field(
        min_length=1,
        validation_alias=AliasChoices("bolt11", "payment_request"),
        description="Encoded BOLT11 payment request",
    )
    amount: Optional[int] = Field(default=None, description="Amount in sats")
    memo: Optional[str] = None
    payment_hash: Optional[str] = None

    model_config = {"extra": "allow", "frozen": True}

    @property
    def lightning_uri(self) -> str:
        return f"lightning:{self.bolt11}"


class PaymentReceipt(BaseModel):
    """Acknowledgement of an outgoing payment."""

    payment_hash: Optional[str] = None
    checking_id: Optional[str] = None

    model_config = {"extra": "allow", "frozen": True}


class ConfigureRequest(BaseModel):
    """Input for reconfiguring the wallet API connection at runtime."""

    base_url: Optional[HttpUrl] = Field(
        description="Base URL of the LNbits API (e.g. http://localhost:5000/api/v1)",
        default=None,
    )
    timeout: Optional[int] = Field(
        description="Request timeout in seconds", default=None, ge=1, le=300
    )

    model_config = {"extra": "forbid"}

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
