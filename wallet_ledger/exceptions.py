"""
Wallet ledger exceptions.

Amount-affecting errors (InvalidNumberFormat, WalletUnresolvable) always
reach the caller. NoDescriptionAvailable is local to description rendering.
"""

from typing import Any, Optional


class WalletLedgerError(Exception):
    """Base class for all wallet ledger errors"""


class InvalidNumberFormat(WalletLedgerError, ValueError):
    """A value could not be parsed as a finite decimal number"""

    def __init__(self, value: Any, message: Optional[str] = None):
        self.value = value
        super().__init__(message or f"Invalid number format: {value!r}")


class WalletUnresolvable(WalletLedgerError, LookupError):
    """The wallet owning a transaction could not be resolved"""

    def __init__(self, wallet_id: Any, message: Optional[str] = None):
        self.wallet_id = wallet_id
        super().__init__(message or f"Wallet {wallet_id!r} cannot be resolved")


class NoDescriptionAvailable(WalletLedgerError):
    """Transaction meta does not carry enough data for a description"""

    def __init__(self, source: Any, message: Optional[str] = None):
        self.source = source
        super().__init__(message or f"No description available for source {source!r}")
