"""
Transaction Amount Module

Ledger entries store their amount as an integer number of minor units
(e.g. cents) encoded as a decimal string. The amount scaler converts between
that stored form and the decimal amount shown for the owning wallet, always
through multiply-then-round or divide on decimal strings.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import uuid as uuid_lib

from .exceptions import InvalidNumberFormat
from .logging_config import get_logger, log_action
from .math_service import MathService, Number
from .wallets import PrecisionResolver


_MINOR_UNITS_PATTERN = re.compile(r'-?[0-9]+')


class TransactionType(Enum):
    """Direction of a ledger entry"""
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Transaction:
    """
    Ledger entry belonging to a wallet.

    `amount` is a signed integer in minor units, kept as a string so it is
    never coerced to float. `confirmed` is owned by the settlement process.
    """
    id: int
    wallet_id: Optional[int]
    type: TransactionType
    amount: str = "0"
    confirmed: bool = True
    meta: Dict[str, Any] = field(default_factory=dict)
    payable_type: Optional[str] = None
    payable_id: Optional[int] = None
    uuid: str = field(default_factory=lambda: str(uuid_lib.uuid4()))
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if not isinstance(self.type, TransactionType):
            self.type = TransactionType(self.type)

        if isinstance(self.amount, int) and not isinstance(self.amount, bool):
            self.amount = str(self.amount)
        if not isinstance(self.amount, str) or not _MINOR_UNITS_PATTERN.fullmatch(self.amount):
            raise InvalidNumberFormat(self.amount, f"Amount must be an integer in minor units, got {self.amount!r}")

        if self.meta is None:
            self.meta = {}

        self.created_at = _as_utc(self.created_at)
        self.updated_at = _as_utc(self.updated_at)

    @property
    def amount_int(self) -> int:
        """Stored amount as a Python int"""
        return int(self.amount)

    @property
    def payable(self) -> Tuple[Optional[str], Optional[int]]:
        """Polymorphic reference to the owning party"""
        return (self.payable_type, self.payable_id)

    @property
    def source(self) -> Optional[str]:
        """Source tag from meta, if any"""
        return self.meta.get('source')

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {
            'id': self.id,
            'uuid': self.uuid,
            'wallet_id': self.wallet_id,
            'payable_type': self.payable_type,
            'payable_id': self.payable_id,
            'type': self.type.value,
            'amount': self.amount,
            'confirmed': self.confirmed,
            'meta': dict(self.meta),
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """Create instance from dictionary"""
        data = dict(data)
        for key in ('created_at', 'updated_at'):
            if key in data and isinstance(data[key], str):
                data[key] = datetime.fromisoformat(data[key])
        if 'type' in data:
            data['type'] = TransactionType(data['type'])
        return cls(**data)


class AmountScaler:
    """
    Converts between stored minor units and per-wallet decimal amounts.

    The wallet precision is resolved on every call, never cached.
    """

    def __init__(self, math: MathService, resolver: PrecisionResolver):
        self.math = math
        self.resolver = resolver
        self.logger = get_logger("wallet_ledger.transactions")

    def to_decimal(self, transaction: Transaction) -> str:
        """
        Get the decimal amount of a transaction.

        Args:
            transaction: Transaction whose wallet defines the precision

        Returns:
            Amount with exactly `decimal_places` fractional digits

        Raises:
            WalletUnresolvable: If the wallet cannot be resolved
            InvalidNumberFormat: If the stored amount is malformed
        """
        decimal_places = self.resolver.resolve(transaction)
        scale = self.math.pow_ten(decimal_places)
        return self.math.div(transaction.amount, scale, decimal_places)

    def from_decimal(self, transaction: Transaction, value: Number) -> str:
        """
        Set the transaction amount from a decimal value.

        The value is scaled by the wallet precision and rounded to an integer
        number of minor units. The transaction is only modified once the
        conversion has succeeded.

        Returns:
            The new stored amount (integer minor units)
        """
        decimal_places = self.resolver.resolve(transaction)
        scale = self.math.pow_ten(decimal_places)
        amount = self.math.round(self.math.mul(value, scale))

        previous = transaction.amount
        transaction.amount = amount
        transaction.updated_at = _utcnow()

        log_action(
            self.logger, "info", "Transaction amount set from decimal value",
            action="amount_set",
            resource=transaction.uuid,
            wallet_id=transaction.wallet_id,
            extra={
                'input': str(value),
                'previous_amount': previous,
                'amount': amount,
                'decimal_places': decimal_places,
            }
        )
        return amount

    def to_int(self, transaction: Transaction) -> int:
        """Stored amount in minor units"""
        return transaction.amount_int


class TransactionPresenter:
    """Builds the externally visible view of a transaction"""

    def __init__(self, scaler: AmountScaler, renderer):
        self.scaler = scaler
        self.renderer = renderer

    def present(self, transaction: Transaction) -> Dict[str, Any]:
        """Amount errors propagate; a missing description is None"""
        return {
            'uuid': transaction.uuid,
            'type': transaction.type.value,
            'amount': transaction.amount,
            'amount_int': self.scaler.to_int(transaction),
            'amount_float': self.scaler.to_decimal(transaction),
            'confirmed': transaction.confirmed,
            'description': self.renderer.describe(transaction),
            'meta': dict(transaction.meta),
            'payable': {
                'type': transaction.payable_type,
                'id': transaction.payable_id,
            },
        }
