"""Caller-side wallet session: credential, wallet list and current invoice.

The API client is stateless. Everything a user interface needs to remember
between calls lives here, together with the policies that tie calls
together: a created wallet is appended to the list, a new invoice replaces
the current one, and a payment clears the current invoice and refreshes
balances.
"""

from typing import Any, Dict, List, Optional

import structlog

from .client import InvalidCredential, LNbitsError, ValidationError
from .models.schemas import Invoice, PaymentReceipt, Wallet
from .utils.auth import KeyKind, is_blank, mask_key
from .utils.runtime_config import RuntimeConfigManager

logger = structlog.get_logger(__name__)


class WalletSession:
    """State owned by the presentation layer for one user."""

    def __init__(self, config_manager: RuntimeConfigManager):
        self._config_manager = config_manager
        self.api_key: Optional[str] = None
        self.wallets: List[Wallet] = []
        self.current_invoice: Optional[Invoice] = None
        self.error: Optional[str] = None
        self.loading = False

    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------

    async def connect(self, api_key: str) -> List[Wallet]:
        """Remember *api_key* and load the wallets it can see."""
        self.api_key = None if is_blank(api_key) else api_key.strip()
        return await self.refresh_wallets()

    async def refresh_wallets(self) -> List[Wallet]:
        self.loading = True
        try:
            client = await self._config_manager.get_client()
            wallets = await client.list_wallets(self._require_api_key())
        except LNbitsError as e:
            self.wallets = []
            self._fail("fetch wallets", e)
            raise
        finally:
            self.loading = False

        self.wallets = wallets
        self.error = None
        logger.info("Wallets loaded", count=len(wallets))
        return wallets

    async def create_wallet(self, name: str) -> Wallet:
        try:
            client = await self._config_manager.get_client()
            wallet = await client.create_wallet(self._require_api_key(), name)
        except LNbitsError as e:
            self._fail("create wallet", e)
            raise

        self.wallets = [*self.wallets, wallet]
        self.error = None
        return wallet

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def create_invoice(
        self, wallet_id: str, amount_sats: int, memo: Optional[str] = None
    ) -> Invoice:
        """Create an invoice on *wallet_id* and make it the current one."""
        try:
            wallet = self._find_wallet(wallet_id)
            inkey = self._wallet_key(wallet, KeyKind.INVOICE)
            client = await self._config_manager.get_client()
            invoice = await client.create_invoice(
                inkey, amount_sats, memo, wallet_id=wallet.id
            )
        except LNbitsError as e:
            self._fail("create invoice", e)
            raise

        self.current_invoice = invoice
        self.error = None
        return invoice

    async def pay_current_invoice(self, wallet_id: str) -> PaymentReceipt:
        """Pay the current invoice from *wallet_id*, then reload balances.

        The current invoice is kept when the payment is never attempted and
        cleared once the service has been asked to pay it. A failed reload
        after a successful payment still returns the receipt.
        """
        try:
            if self.current_invoice is None:
                raise ValidationError("No current invoice to pay")
            wallet = self._find_wallet(wallet_id)
            adminkey = self._wallet_key(wallet, KeyKind.ADMIN)
        except LNbitsError as e:
            self._fail("pay invoice", e)
            raise

        try:
            client = await self._config_manager.get_client()
            receipt = await client.pay_invoice(adminkey, self.current_invoice.bolt11)
        except LNbitsError as e:
            self.current_invoice = None
            self._fail("pay invoice", e)
            raise

        self.current_invoice = None
        self.error = None
        try:
            await self.refresh_wallets()
        except LNbitsError:
            # Payment went through; refresh_wallets has recorded the error
            logger.warning("Balance refresh after payment failed", wallet_id=wallet.id)
        return receipt

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Renderable state with every key masked."""
        invoice = None
        if self.current_invoice is not None:
            invoice = self.current_invoice.model_dump(mode="json", exclude_none=True)
            invoice["lightning_uri"] = self.current_invoice.lightning_uri
        return {
            "api_key": mask_key(self.api_key),
            "loading": self.loading,
            "error": self.error,
            "wallets": [render_wallet(w) for w in self.wallets],
            "current_invoice": invoice,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_api_key(self) -> str:
        if self.api_key is None:
            raise InvalidCredential("Enter your LNbits admin key first")
        return self.api_key

    def _find_wallet(self, wallet_id: str) -> Wallet:
        for wallet in self.wallets:
            if wallet.id == wallet_id:
                return wallet
        raise ValidationError(f"Unknown wallet: {wallet_id}")

    @staticmethod
    def _wallet_key(wallet: Wallet, kind: KeyKind) -> str:
        # No fallback between keys: an invoice key never pays.
        key = wallet.adminkey if kind.can_send else wallet.inkey
        if is_blank(key):
            raise InvalidCredential(f"Wallet {wallet.id} has no {kind.value} key")
        return key

    def _fail(self, action: str, error: LNbitsError) -> None:
        self.error = f"Failed to {action}: {error}"
        logger.warning("Wallet action failed", action=action, error=str(error))


def render_wallet(wallet: Wallet) -> Dict[str, Any]:
    data = wallet.model_dump(mode="json")
    data["balance_sats"] = wallet.balance_sats
    data["adminkey"] = mask_key(wallet.adminkey)
    data["inkey"] = mask_key(wallet.inkey)
    return data
