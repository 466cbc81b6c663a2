"""LNbits wallet API client."""

from typing import Any, Dict, List, Optional, Union

import httpx
import pydantic
import structlog
from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings

from .models.schemas import Direction, Invoice, PaymentReceipt, Wallet
from .utils.auth import KeyKind, api_key_headers, is_blank

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api/v1"


class WalletManagerConfig(BaseSettings):
    """Configuration for the wallet API client."""

    base_url: HttpUrl = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the LNbits API",
    )
    timeout: int = Field(default=30, description="Request timeout in seconds")
    api_key: Optional[str] = Field(
        default=None, description="Admin key to connect with on startup"
    )

    model_config = {"env_prefix": "LNBITS_", "case_sensitive": False}


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------


class LNbitsError(Exception):
    """Base exception for wallet API failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(LNbitsError):
    """Bad local input; no request was sent."""


class InvalidCredential(ValidationError):
    """Missing or blank API key; no request was sent."""


class ApiError(LNbitsError):
    """The service answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message, status_code)


class NetworkError(LNbitsError):
    """No usable response: transport failure, timeout or malformed body."""


WalletPayload = Union[Dict[str, Any], List[Dict[str, Any]]]


def normalize_wallets(payload: WalletPayload) -> List[Dict[str, Any]]:
    """Coerce the ``/wallet`` response into a list of wallet objects.

    The service answers with a single object for a wallet key and with an
    array elsewhere. An array is returned in its original order.
    """
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        return list(payload)
    raise NetworkError(
        f"Malformed wallet response: expected object or array, "
        f"got {type(payload).__name__}"
    )


def _require_key(key: Optional[str], kind: KeyKind) -> str:
    if is_blank(key):
        raise InvalidCredential(f"Missing {kind.value} key")
    return key.strip()


class WalletApiClient:
    """Asynchronous gateway to the LNbits wallet API.

    Keys are passed per call and never cached, so one client can serve
    several wallets at once. The client keeps no domain state.
    """

    def __init__(self, config: Optional[WalletManagerConfig] = None):
        self.config = config or WalletManagerConfig()
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if not self.client:
            self.client = httpx.AsyncClient(
                base_url=str(self.config.base_url),
                timeout=self.config.timeout,
                headers={"Content-Type": "application/json"},
            )
        return self.client

    async def aclose(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        key: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one authenticated request and return the decoded JSON body."""
        client = await self._ensure_client()

        try:
            response = await client.request(
                method=method, url=path, json=json, headers=api_key_headers(key)
            )
        except httpx.RequestError as e:
            logger.error("Request error", error=str(e), method=method, path=path)
            raise NetworkError(f"Request failed: {e}") from e

        logger.info(
            "API request",
            method=method,
            path=path,
            status_code=response.status_code,
        )

        if not response.is_success:
            error_msg = f"API request failed: {response.status_code}"
            try:
                error_detail = response.json()
            except ValueError:
                error_detail = None
            if isinstance(error_detail, dict) and "detail" in error_detail:
                error_msg += f" - {error_detail['detail']}"
            elif response.text:
                error_msg += f" - {response.text}"
            raise ApiError(error_msg, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error("Malformed response body", method=method, path=path)
            raise NetworkError(f"Malformed response from {path}: {e}") from e

    @staticmethod
    def _parse(model, data: Any, path: str):
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as e:
            raise NetworkError(
                f"Malformed response from {path}: {e.error_count()} invalid field(s)"
            ) from e

    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------

    async def list_wallets(self, credential: str) -> List[Wallet]:
        """Return the wallets visible to *credential*."""
        key = _require_key(credential, KeyKind.ADMIN)
        data = await self._request("GET", "/wallet", key)
        return [self._parse(Wallet, item, "/wallet") for item in normalize_wallets(data)]

    async def create_wallet(self, credential: str, name: str) -> Wallet:
        """Create a wallet called *name*. The caller owns any wallet list."""
        key = _require_key(credential, KeyKind.ADMIN)
        if is_blank(name):
            raise ValidationError("Please enter a wallet name")
        data = await self._request("POST", "/wallets", key, json={"name": name.strip()})
        return self._parse(Wallet, data, "/wallets")

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    @staticmethod
    def _payment_body(direction: Direction, **fields: Any) -> Dict[str, Any]:
        return {"out": direction.out, **fields}

    async def create_invoice(
        self,
        inkey: str,
        amount_sats: int,
        memo: Optional[str] = None,
        *,
        wallet_id: Optional[str] = None,
    ) -> Invoice:
        """Request an incoming BOLT11 invoice for *amount_sats*.

        A blank *memo* is replaced by ``"Invoice from <wallet_id>"``.
        """
        key = _require_key(inkey, KeyKind.INVOICE)
        if isinstance(amount_sats, bool) or not isinstance(amount_sats, int):
            raise ValidationError("Please enter a valid amount")
        if amount_sats <= 0:
            raise ValidationError("Please enter a valid amount")
        if is_blank(memo):
            memo = f"Invoice from {wallet_id or 'LNbits wallet'}"

        body = self._payment_body(Direction.INCOMING, amount=amount_sats, memo=memo)
        data = await self._request("POST", "/payments", key, json=body)
        return self._parse(Invoice, data, "/payments")

    async def pay_invoice(self, adminkey: str, bolt11: str) -> PaymentReceipt:
        """Pay *bolt11* from the wallet owning *adminkey*.

        Sends exactly one request. Balances are not refreshed here.
        """
        key = _require_key(adminkey, KeyKind.ADMIN)
        if is_blank(bolt11):
            raise ValidationError("Missing payment request")

        body = self._payment_body(Direction.OUTGOING, bolt11=bolt11.strip())
        data = await self._request("POST", "/payments", key, json=body)
        return self._parse(PaymentReceipt, data, "/payments")
