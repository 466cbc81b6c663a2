"""API key helpers for the LNbits wallet API."""

from enum import Enum
from typing import Dict, Optional

API_KEY_HEADER = "X-Api-Key"
MASK = "***MASKED***"


class KeyKind(str, Enum):
    """Which operations a wallet key authorizes."""

    ADMIN = "admin"  # receive and send
    INVOICE = "invoice"  # receive only

    @property
    def can_send(self) -> bool:
        return self is KeyKind.ADMIN


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def api_key_headers(key: str) -> Dict[str, str]:
    return {API_KEY_HEADER: key}


def mask_key(key: Optional[str]) -> Optional[str]:
    """Replace a key with a fixed marker so it can be shown or logged."""
    if not key:
        return None
    return MASK
