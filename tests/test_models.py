from dataclasses import FrozenInstanceError
from datetime import date
from decimal import Decimal

import pytest

from statement_codecs.models import Balance, DebitCredit, Entry, Statement


def _entry(**overrides):
    fields = {
        "booking_date": date(2025, 10, 1),
        "value_date": None,
        "amount": Decimal("1.00"),
        "currency": "EUR",
        "dc": DebitCredit.CREDIT,
    }
    fields.update(overrides)
    return Entry(**fields)


def test_entry_defaults():
    e = _entry()
    assert e.description == ""
    assert e.reference is None


def test_entry_rejects_negative_amount():
    with pytest.raises(ValueError, match="unsigned"):
        _entry(amount=Decimal("-0.01"))


def test_entry_accepts_zero_and_negative_zero():
    assert _entry(amount=Decimal("0")).amount == 0
    assert _entry(amount=Decimal("-0")).amount == 0


def test_entry_rejects_float_amount():
    with pytest.raises(TypeError):
        _entry(amount=1.5)


def test_balance_is_signed_and_requires_decimal():
    b = Balance(date=date(2025, 1, 1), amount=Decimal("-12.30"), currency="USD")
    assert b.amount < 0
    with pytest.raises(TypeError):
        Balance(date=date(2025, 1, 1), amount=12, currency="USD")


def test_statement_entries_coerced_to_tuple_and_frozen():
    st = Statement(account_id="A1", entries=[_entry(), _entry(dc=DebitCredit.DEBIT)])
    assert isinstance(st.entries, tuple)
    assert [e.dc for e in st.entries] == [DebitCredit.CREDIT, DebitCredit.DEBIT]
    with pytest.raises(FrozenInstanceError):
        st.account_id = "B2"


def test_statement_defaults():
    st = Statement(account_id="A1")
    assert st.statement_id is None
    assert st.opening_balance is None
    assert st.closing_balance is None
    assert st.entries == ()


def test_debit_credit_letters():
    assert DebitCredit.DEBIT.letter == "D"
    assert DebitCredit.CREDIT.letter == "C"
