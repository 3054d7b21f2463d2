"""
Transaction Description Module

Renders a human readable description of a ledger entry from its meta.
The meta `source` tag selects one of a closed set of shapes; each shape is a
pydantic model and the set is validated as a discriminated union. Missing or
unknown data yields no description instead of an error, since descriptions
are presentational only.
"""

import json
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Any, Callable, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .exceptions import NoDescriptionAvailable
from .logging_config import get_logger
from .transactions import TransactionType


class TransactionSource(str, Enum):
    """Meta source tags, in sort priority order"""
    PURCHASE = "purchase"
    CANCEL = "cancel"
    GRANTED = "granted"
    ORDER = "order"
    PENALTY = "penalty"
    TRANSFER = "transfer"
    PAYOUT = "payout"


SOURCE_PRIORITY = [source.value for source in TransactionSource]

BANK_BALANCE_TYPE = "bank"

# Message keys, Laravel style placeholders
CANCEL_MESSAGE = "Cancel of order #:order_hash :balance_type"
PAYOUT_MESSAGE = "Payout of :start_date to :end_date"
TRANSFER_MESSAGE = "Transfer to main balance order #:order_hash"
PENALTY_MESSAGE = "Penalty for cancel of order #:order_hash"
BANK_PURCHASE_MESSAGE = "Bank transfer for order #:order_hash"
PURCHASE_MESSAGE = "Pay with :balance_type for order #:order_hash"
ORDER_MESSAGE = "Pending payment for order #:order_hash"
DEPOSIT_GRANTED_MESSAGE = "Deposit balance :balance_type"
WITHDRAW_GRANTED_MESSAGE = "Withdrawn balance :balance_type"


class SourceMeta(BaseModel):
    """Common settings for all meta shapes"""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True, frozen=True)


class PurchaseMeta(SourceMeta):
    source: Literal["purchase"]
    order_hash: str
    balance_type: Optional[str] = None
    order_id: Optional[str] = None


class CancelMeta(SourceMeta):
    source: Literal["cancel"]
    order_hash: str
    balance_type: str
    order_id: Optional[str] = None


class GrantedMeta(SourceMeta):
    source: Literal["granted"]
    balance_type: str


class OrderMeta(SourceMeta):
    source: Literal["order"]
    order_hash: str
    order_id: Optional[str] = None


class PenaltyMeta(SourceMeta):
    source: Literal["penalty"]
    order_hash: str
    order_id: Optional[str] = None


class TransferMeta(SourceMeta):
    source: Literal["transfer"]
    order_hash: str
    order_id: Optional[str] = None


class PayoutMeta(SourceMeta):
    source: Literal["payout"]
    start_date: str
    end_date: str
    payout_id: Optional[str] = None


TransactionMeta = Annotated[
    Union[PurchaseMeta, CancelMeta, GrantedMeta, OrderMeta, PenaltyMeta, TransferMeta, PayoutMeta],
    Field(discriminator="source"),
]

_meta_adapter = TypeAdapter(TransactionMeta)


def parse_meta(meta: Any) -> SourceMeta:
    """
    Validate transaction meta against the shape for its source tag.

    Raises:
        NoDescriptionAvailable: If the source is missing or unknown, or a
            field required by that source is missing
    """
    source = meta.get('source') if isinstance(meta, Mapping) else None
    try:
        return _meta_adapter.validate_python(meta)
    except ValidationError as exc:
        missing = [".".join(str(part) for part in error['loc']) for error in exc.errors()]
        raise NoDescriptionAvailable(
            source, f"Meta for source {source!r} is not renderable: {', '.join(missing)}"
        ) from exc


class Translator(ABC):
    """Localization capability"""

    @abstractmethod
    def translate(self, key: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Translate a message key, substituting :placeholders from params"""
        pass


class CatalogTranslator(Translator):
    """
    Translator backed by a key -> line catalogue.

    Unknown keys translate to themselves, so an empty catalogue renders the
    English message keys.
    """

    def __init__(self, catalog: Optional[Mapping[str, str]] = None):
        self.catalog: Dict[str, str] = dict(catalog or {})

    @classmethod
    def from_json_file(cls, path: str) -> 'CatalogTranslator':
        """Load a JSON translation file ({"key": "line", ...})"""
        with open(path, encoding="utf-8") as handle:
            return cls(json.load(handle))

    def translate(self, key: str, params: Optional[Mapping[str, Any]] = None) -> str:
        line = self.catalog.get(key, key)
        if not params:
            return line

        # Single pass, longest names first so :order never clobbers :order_hash.
        # Substituted values are never scanned again.
        names = sorted((re.escape(name) for name in params), key=len, reverse=True)
        pattern = re.compile(":(" + "|".join(names) + ")")
        return pattern.sub(lambda match: str(params[match.group(1)]), line)


def _type_value(transaction_type: Union[TransactionType, str, None]) -> Optional[str]:
    if isinstance(transaction_type, TransactionType):
        return transaction_type.value
    return transaction_type


class DescriptionRenderer:
    """Renders descriptions for ledger entries from their meta"""

    def __init__(self, translator: Translator):
        self.translator = translator
        self.logger = get_logger("wallet_ledger.descriptions")
        self._handlers: Dict[TransactionSource, Callable[[Any, Optional[str]], str]] = {
            TransactionSource.CANCEL: self._render_cancel,
            TransactionSource.PAYOUT: self._render_payout,
            TransactionSource.TRANSFER: self._render_transfer,
            TransactionSource.PENALTY: self._render_penalty,
            TransactionSource.PURCHASE: self._render_purchase,
            TransactionSource.ORDER: self._render_order,
            TransactionSource.GRANTED: self._render_granted,
        }

    def render(self, transaction_type: Union[TransactionType, str, None],
               meta: Mapping[str, Any]) -> Optional[str]:
        """
        Render a description for the given type and meta.

        Returns:
            The localized description, or None if the meta has no
            renderable source
        """
        try:
            parsed = parse_meta(meta)
            handler = self._handlers[TransactionSource(parsed.source)]
            return handler(parsed, _type_value(transaction_type))
        except NoDescriptionAvailable as exc:
            self.logger.debug(f"No description rendered: {exc}")
            return None

    def describe(self, transaction) -> Optional[str]:
        """Render the description of a transaction"""
        return self.render(transaction.type, transaction.meta)

    def _balance_type(self, balance_type: str) -> str:
        return self.translator.translate(balance_type)

    def _render_cancel(self, meta: CancelMeta, transaction_type: Optional[str]) -> str:
        return self.translator.translate(CANCEL_MESSAGE, {
            'order_hash': meta.order_hash,
            'balance_type': self._balance_type(meta.balance_type),
        })

    def _render_payout(self, meta: PayoutMeta, transaction_type: Optional[str]) -> str:
        return self.translator.translate(PAYOUT_MESSAGE, {
            'start_date': meta.start_date,
            'end_date': meta.end_date,
        })

    def _render_transfer(self, meta: TransferMeta, transaction_type: Optional[str]) -> str:
        return self.translator.translate(TRANSFER_MESSAGE, {'order_hash': meta.order_hash})

    def _render_penalty(self, meta: PenaltyMeta, transaction_type: Optional[str]) -> str:
        return self.translator.translate(PENALTY_MESSAGE, {'order_hash': meta.order_hash})

    def _render_purchase(self, meta: PurchaseMeta, transaction_type: Optional[str]) -> str:
        if meta.balance_type == BANK_BALANCE_TYPE:
            return self.translator.translate(BANK_PURCHASE_MESSAGE, {'order_hash': meta.order_hash})

        if meta.balance_type is None:
            raise NoDescriptionAvailable(meta.source, "Purchase meta is missing balance_type")

        return self.translator.translate(PURCHASE_MESSAGE, {
            'order_hash': meta.order_hash,
            'balance_type': self._balance_type(meta.balance_type),
        })

    def _render_order(self, meta: OrderMeta, transaction_type: Optional[str]) -> str:
        return self.translator.translate(ORDER_MESSAGE, {'order_hash': meta.order_hash})

    def _render_granted(self, meta: GrantedMeta, transaction_type: Optional[str]) -> str:
        message = DEPOSIT_GRANTED_MESSAGE
        if transaction_type != TransactionType.DEPOSIT.value:
            message = WITHDRAW_GRANTED_MESSAGE
        return self.translator.translate(message, {
            'balance_type': self._balance_type(meta.balance_type),
        })
