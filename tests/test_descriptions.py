"""
Test suite for descriptions module

Tests meta validation per source tag, translation and description
rendering. Unrenderable meta must degrade to no description.
"""

import json
import pytest

from wallet_ledger.descriptions import (
    CatalogTranslator, DescriptionRenderer, TransactionSource, SOURCE_PRIORITY,
    CancelMeta, PayoutMeta, parse_meta
)
from wallet_ledger.exceptions import NoDescriptionAvailable
from wallet_ledger.transactions import Transaction, TransactionType


@pytest.fixture
def renderer():
    """Renderer with an empty catalogue (English keys)"""
    return DescriptionRenderer(CatalogTranslator())


class TestParseMeta:
    """Test validation of meta against its source shape"""

    def test_parse_cancel(self):
        """Test a complete cancel meta"""
        meta = parse_meta({'source': 'cancel', 'order_hash': 'ABC1', 'balance_type': 'cash', 'note': 'x'})
        assert isinstance(meta, CancelMeta)
        assert meta.order_hash == "ABC1"

    def test_numbers_coerce_to_strings(self):
        """Test numeric identifiers are accepted as text"""
        meta = parse_meta({'source': 'payout', 'start_date': '2024-01-01', 'end_date': '2024-01-31', 'payout_id': 12})
        assert isinstance(meta, PayoutMeta)
        assert meta.payout_id == "12"

    @pytest.mark.parametrize("meta", [
        {},
        {'source': 'unknown_tag'},
        {'source': 'cancel', 'order_hash': 'ABC1'},
        {'source': 'payout', 'start_date': '2024-01-01'},
        None,
        "purchase",
    ])
    def test_unrenderable_meta(self, meta):
        """Test missing source, unknown source and missing fields"""
        with pytest.raises(NoDescriptionAvailable):
            parse_meta(meta)

    def test_error_carries_source(self):
        """Test the failing source tag is reported"""
        with pytest.raises(NoDescriptionAvailable) as exc_info:
            parse_meta({'source': 'penalty'})
        assert exc_info.value.source == "penalty"

    def test_source_priority(self):
        """Test the fixed source priority order"""
        assert SOURCE_PRIORITY == ['purchase', 'cancel', 'granted', 'order', 'penalty', 'transfer', 'payout']
        assert TransactionSource("granted") == TransactionSource.GRANTED


class TestCatalogTranslator:
    """Test the catalogue based translator"""

    def test_unknown_key_is_returned(self):
        """Test untranslated keys fall back to the key itself"""
        assert CatalogTranslator().translate("bonus") == "bonus"

    def test_placeholders(self):
        """Test :placeholder substitution"""
        translator = CatalogTranslator({'Payout of :start_date to :end_date': 'Pago del :start_date al :end_date'})
        line = translator.translate("Payout of :start_date to :end_date", {'start_date': 'a', 'end_date': 'b'})
        assert line == "Pago del a al b"

    def test_longest_placeholder_first(self):
        """Test overlapping placeholder names"""
        line = CatalogTranslator().translate(":order and :order_hash", {'order': 'A', 'order_hash': 'B'})
        assert line == "A and B"

    def test_substituted_values_are_not_rescanned(self):
        """Test placeholder-like text inside values is kept verbatim"""
        line = CatalogTranslator().translate(
            "Payout of :start_date to :end_date", {'start_date': ':end_date', 'end_date': '2024-01-31'}
        )
        assert line == "Payout of :end_date to 2024-01-31"

    def test_from_json_file(self, tmp_path):
        """Test loading a JSON catalogue"""
        path = tmp_path / "es.json"
        path.write_text(json.dumps({'cash': 'efectivo'}), encoding="utf-8")

        translator = CatalogTranslator.from_json_file(str(path))
        assert translator.translate("cash") == "efectivo"


class TestDescriptionRenderer:
    """Test description rendering for every source tag"""

    @pytest.mark.parametrize("transaction_type,meta,expected", [
        (TransactionType.DEPOSIT,
         {'source': 'cancel', 'order_hash': 'ABC1', 'balance_type': 'cash'},
         "Cancel of order #ABC1 cash"),
        (TransactionType.DEPOSIT,
         {'source': 'payout', 'start_date': '2024-01-01', 'end_date': '2024-01-31'},
         "Payout of 2024-01-01 to 2024-01-31"),
        (TransactionType.WITHDRAW,
         {'source': 'transfer', 'order_hash': 'T9'},
         "Transfer to main balance order #T9"),
        (TransactionType.WITHDRAW,
         {'source': 'penalty', 'order_hash': 'P1'},
         "Penalty for cancel of order #P1"),
        (TransactionType.WITHDRAW,
         {'source': 'purchase', 'order_hash': 'B2', 'balance_type': 'bank'},
         "Bank transfer for order #B2"),
        (TransactionType.WITHDRAW,
         {'source': 'purchase', 'order_hash': 'C3', 'balance_type': 'credit'},
         "Pay with credit for order #C3"),
        (TransactionType.DEPOSIT,
         {'source': 'order', 'order_hash': 'O4'},
         "Pending payment for order #O4"),
        (TransactionType.DEPOSIT,
         {'source': 'granted', 'balance_type': 'bonus'},
         "Deposit balance bonus"),
        (TransactionType.WITHDRAW,
         {'source': 'granted', 'balance_type': 'bonus'},
         "Withdrawn balance bonus"),
    ])
    def test_render(self, renderer, transaction_type, meta, expected):
        """Test each rendering rule"""
        assert renderer.render(transaction_type, meta) == expected

    def test_render_accepts_type_strings(self, renderer):
        """Test plain type strings select the granted rule"""
        meta = {'source': 'granted', 'balance_type': 'bonus'}
        assert renderer.render("deposit", meta) == "Deposit balance bonus"
        assert renderer.render("withdraw", meta) == "Withdrawn balance bonus"

    def test_numeric_order_hash(self, renderer):
        """Test numeric hashes are rendered as text"""
        assert renderer.render(TransactionType.DEPOSIT, {'source': 'order', 'order_hash': 1234}) == \
            "Pending payment for order #1234"

    def test_meta_values_with_placeholders(self, renderer):
        """Test meta values that look like placeholders do not leak into other fields"""
        meta = {'source': 'payout', 'start_date': ':end_date', 'end_date': '2024-01-31'}
        assert renderer.render("deposit", meta) == "Payout of :end_date to 2024-01-31"

        meta = {'source': 'cancel', 'order_hash': ':balance_type', 'balance_type': 'cash'}
        assert renderer.render("deposit", meta) == "Cancel of order #:balance_type cash"

    @pytest.mark.parametrize("meta", [
        {'source': 'unknown_tag'},
        {'order_hash': 'ABC1'},
        {'source': 'cancel', 'order_hash': 'ABC1'},
        {'source': 'purchase', 'order_hash': 'ABC1'},
        {'source': 'granted'},
        {},
    ])
    def test_no_description(self, renderer, meta):
        """Test unrenderable meta yields None without raising"""
        assert renderer.render(TransactionType.DEPOSIT, meta) is None

    def test_balance_type_is_localized(self):
        """Test balance types and messages go through the translator"""
        translator = CatalogTranslator({
            'cash': 'efectivo',
            'Cancel of order #:order_hash :balance_type': 'Cancelación del pedido #:order_hash :balance_type',
        })
        renderer = DescriptionRenderer(translator)

        line = renderer.render(TransactionType.DEPOSIT, {'source': 'cancel', 'order_hash': 'ABC1', 'balance_type': 'cash'})
        assert line == "Cancelación del pedido #ABC1 efectivo"

    def test_bank_is_matched_before_localization(self):
        """Test the bank rule checks the raw balance type"""
        renderer = DescriptionRenderer(CatalogTranslator({'bank': 'banco'}))
        line = renderer.render(TransactionType.WITHDRAW, {'source': 'purchase', 'order_hash': 'B2', 'balance_type': 'bank'})
        assert line == "Bank transfer for order #B2"

    def test_describe_does_not_mutate(self, renderer):
        """Test rendering leaves the transaction untouched"""
        meta = {'source': 'cancel', 'order_hash': 'ABC1', 'balance_type': 'cash'}
        transaction = Transaction(id=1, wallet_id=1, type=TransactionType.DEPOSIT, amount="100", meta=meta)
        before = transaction.to_dict()

        assert renderer.describe(transaction) == "Cancel of order #ABC1 cash"
        assert transaction.to_dict() == before
