"""
Transaction Ordering Module

Orders ledger entries by plain columns or by values embedded in their meta
document. Meta values are compared by meaning, not as strings: sources by
their fixed priority and identifiers numerically. Entries lacking the value
always sort last, whatever the direction. Ties break on id in the requested
direction.

The same semantics are available as an ORDER BY fragment for SQLite's JSON
functions, for callers that sort in the database.
"""

import re
from decimal import Decimal
from enum import Enum
from functools import cmp_to_key
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .descriptions import SOURCE_PRIORITY
from .exceptions import InvalidNumberFormat
from .math_service import to_decimal
from .transactions import Transaction


class SortDirection(Enum):
    """Sort direction"""
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Union['SortDirection', str]) -> 'SortDirection':
        """Accept an enum member or a case-insensitive name"""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class SortField(Enum):
    """Fields a transaction list can be ordered by"""
    ID = "id"
    TYPE = "type"
    AMOUNT = "amount"
    CREATED_AT = "created_at"
    SOURCE = "source"
    ORDER_ID = "order_id"
    PAYOUT_ID = "payout_id"


Comparator = Callable[[Transaction, Transaction], int]

_IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$')


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _source_rank(transaction: Transaction) -> Optional[int]:
    try:
        return SOURCE_PRIORITY.index(transaction.meta.get('source'))
    except ValueError:
        return None


def _meta_number(key: str) -> Callable[[Transaction], Optional[Decimal]]:
    def extract(transaction: Transaction) -> Optional[Decimal]:
        value = transaction.meta.get(key)
        if value is None:
            return None
        try:
            return to_decimal(value)
        except InvalidNumberFormat:
            return None
    return extract


_SORT_KEYS: Dict[SortField, Callable[[Transaction], Any]] = {
    SortField.ID: lambda transaction: transaction.id,
    SortField.TYPE: lambda transaction: transaction.type.value,
    SortField.AMOUNT: lambda transaction: transaction.amount_int,
    SortField.CREATED_AT: lambda transaction: transaction.created_at,
    SortField.SOURCE: _source_rank,
    SortField.ORDER_ID: _meta_number('order_id'),
    SortField.PAYOUT_ID: _meta_number('payout_id'),
}


def comparator_for(field: Union[SortField, str],
                   direction: Union[SortDirection, str] = SortDirection.ASC) -> Comparator:
    """
    Select the comparator for a sort request.

    Args:
        field: Field to order by
        direction: Sort direction

    Returns:
        cmp-style function returning -1, 0 or 1

    Raises:
        ValueError: If the field or direction is unknown
    """
    key = _SORT_KEYS[SortField(field)]
    sign = 1 if SortDirection.parse(direction) == SortDirection.ASC else -1

    def compare(a: Transaction, b: Transaction) -> int:
        key_a, key_b = key(a), key(b)
        if key_a is None and key_b is None:
            return sign * _cmp(a.id, b.id)
        if key_a is None:
            return 1
        if key_b is None:
            return -1
        return sign * (_cmp(key_a, key_b) or _cmp(a.id, b.id))

    return compare


def sort_transactions(transactions: Iterable[Transaction], field: Union[SortField, str],
                      direction: Union[SortDirection, str] = SortDirection.ASC) -> List[Transaction]:
    """Return a new list of transactions in the requested order"""
    return sorted(transactions, key=cmp_to_key(comparator_for(field, direction)))


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER_PATTERN.match(name):
        raise ValueError(f"Invalid column name '{name}'")
    return name


def order_by_sql(field: Union[SortField, str],
                 direction: Union[SortDirection, str] = SortDirection.ASC,
                 meta_column: str = "meta", id_column: str = "id") -> str:
    """
    Build an SQLite ORDER BY fragment (without the ORDER BY keyword).

    Meta values are read with json_extract. Non-numeric identifiers cast to
    0 in SQLite, whereas the in-memory comparator treats them as missing.
    """
    field = SortField(field)
    direction_sql = SortDirection.parse(direction).value.upper()
    meta_column = _check_identifier(meta_column)
    id_column = _check_identifier(id_column)
    tie_break = f"{id_column} {direction_sql}"

    if field == SortField.ID:
        return tie_break

    if field == SortField.SOURCE:
        cases = " ".join(f"WHEN '{source}' THEN {rank}" for rank, source in enumerate(SOURCE_PRIORITY))
        expression = f"CASE json_extract({meta_column}, '$.source') {cases} END"
    elif field in (SortField.ORDER_ID, SortField.PAYOUT_ID):
        expression = f"CAST(json_extract({meta_column}, '$.{field.value}') AS NUMERIC)"
    elif field == SortField.AMOUNT:
        return f"CAST({field.value} AS INTEGER) {direction_sql}, {tie_break}"
    else:
        return f"{field.value} {direction_sql}, {tie_break}"

    return f"{expression} IS NULL, {expression} {direction_sql}, {tie_break}"
