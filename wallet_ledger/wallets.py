"""
Wallet Precision Module

Wallets own transactions and define how many decimal places their amounts
are presented with. The precision resolver looks the owning wallet up on
every call so wallets with different precision never share a cached value.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import threading

from .config import get_config
from .exceptions import WalletUnresolvable
from .logging_config import get_logger, log_action


@dataclass
class Wallet:
    """Account that owns transactions"""
    id: int
    name: str = "Default Wallet"
    slug: str = "default"
    decimal_places: int = 2
    holder_type: Optional[str] = None
    holder_id: Optional[int] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not _valid_decimal_places(self.decimal_places):
            raise ValueError(f"decimal_places must be a non-negative integer, got {self.decimal_places!r}")


def _valid_decimal_places(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class WalletAccessor(ABC):
    """Capability for loading the wallet a transaction belongs to"""

    @abstractmethod
    def get(self, wallet_id: int) -> Optional[Wallet]:
        """Return the wallet, or None if it does not exist"""
        pass


class InMemoryWalletRegistry(WalletAccessor):
    """Thread-safe in-memory wallet accessor"""

    def __init__(self):
        self._wallets: Dict[int, Wallet] = {}
        self._lock = threading.Lock()
        self._next_id = 1

    def add(self, wallet: Wallet) -> Wallet:
        """Register an existing wallet, replacing any with the same id"""
        with self._lock:
            self._wallets[wallet.id] = wallet
            self._next_id = max(self._next_id, wallet.id + 1)
        return wallet

    def create(self, name: str = "Default Wallet", slug: str = "default",
               decimal_places: Optional[int] = None, **kwargs) -> Wallet:
        """Create and register a wallet with the next free id"""
        if decimal_places is None:
            decimal_places = get_config().default_decimal_places

        with self._lock:
            wallet = Wallet(
                id=self._next_id,
                name=name,
                slug=slug,
                decimal_places=decimal_places,
                **kwargs
            )
            self._wallets[wallet.id] = wallet
            self._next_id += 1
        return wallet

    def get(self, wallet_id: int) -> Optional[Wallet]:
        with self._lock:
            return self._wallets.get(wallet_id)


class PrecisionResolver:
    """Resolves the decimal places configured for a transaction's wallet"""

    def __init__(self, wallets: WalletAccessor):
        self.wallets = wallets
        self.logger = get_logger("wallet_ledger.wallets")

    def resolve(self, transaction) -> int:
        """
        Get the decimal places of the wallet owning a transaction.

        Args:
            transaction: Transaction with a wallet_id

        Returns:
            Non-negative number of decimal places

        Raises:
            WalletUnresolvable: If the transaction has no wallet, the wallet
                does not exist, or it reports an invalid precision
        """
        wallet_id = getattr(transaction, 'wallet_id', None)
        if wallet_id is None:
            self._log_failure(transaction, wallet_id, "transaction has no wallet")
            raise WalletUnresolvable(wallet_id, "Transaction has no associated wallet")

        try:
            wallet = self.wallets.get(wallet_id)
        except KeyError:
            wallet = None

        if wallet is None:
            self._log_failure(transaction, wallet_id, "wallet not found")
            raise WalletUnresolvable(wallet_id)

        decimal_places = getattr(wallet, 'decimal_places', None)
        if not _valid_decimal_places(decimal_places):
            self._log_failure(transaction, wallet_id, f"invalid decimal places {decimal_places!r}")
            raise WalletUnresolvable(
                wallet_id, f"Wallet {wallet_id!r} has invalid decimal places {decimal_places!r}"
            )

        return decimal_places

    def _log_failure(self, transaction, wallet_id, reason: str) -> None:
        log_action(
            self.logger, "warning", f"Cannot resolve wallet precision: {reason}",
            action="resolve_precision",
            resource=getattr(transaction, 'uuid', None),
            wallet_id=wallet_id
        )
