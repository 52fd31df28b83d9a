import dataclasses
import io
from datetime import date
from decimal import Decimal

import pytest

from statement_codecs.codecs.mt940 import Mt940Codec, parse_transaction_line
from statement_codecs.errors import (
    InvalidAmountError,
    InvalidDateError,
    InvalidIndicatorError,
    MalformedRecordError,
)
from statement_codecs.models import Balance, DebitCredit, Entry, Statement

CODEC = Mt940Codec()


def _decode(*lines: str, newline: str = "\n") -> Statement:
    return CODEC.decode(io.BytesIO(newline.join(lines).encode("utf-8")))


def _encode(st: Statement) -> str:
    buf = io.BytesIO()
    CODEC.encode(st, buf)
    return buf.getvalue().decode("utf-8")


# ---- :61: line -----------------------------------------------------------------


def test_transaction_line_minimal():
    tx = parse_transaction_line("2510011001C100,00NTRFNONREF")
    assert tx.value_date == date(2025, 10, 1)
    assert tx.booking_date == date(2025, 10, 1)
    assert tx.dc is DebitCredit.CREDIT
    assert tx.amount == Decimal("100.00")
    assert tx.currency is None
    assert tx.transaction_type == "NTRF"
    assert tx.reference is None


def test_transaction_line_with_currency_and_reference():
    tx = parse_transaction_line("2503020303DEUR12,5NMSCINV-77 ")
    assert tx.value_date == date(2025, 3, 2)
    assert tx.booking_date == date(2025, 3, 3)
    assert tx.dc is DebitCredit.DEBIT
    assert tx.currency == "EUR"
    assert tx.amount == Decimal("12.5")
    assert tx.transaction_type == "NMSC"
    assert tx.reference == "INV-77"


def test_transaction_line_optional_parts_absent():
    tx = parse_transaction_line("251231C7,")
    assert tx.booking_date == tx.value_date == date(2025, 12, 31)
    assert tx.amount == Decimal("7")
    assert tx.transaction_type is None
    assert tx.reference is None


def test_booking_date_takes_year_of_value_date():
    tx = parse_transaction_line("2412311231D1,00NTRFX")
    assert tx.booking_date == date(2024, 12, 31)


@pytest.mark.parametrize(
    "body, expected",
    [
        ("690101C1,00", date(2069, 1, 1)),
        ("700101C1,00", date(1970, 1, 1)),
        ("000229C1,00", date(2000, 2, 29)),
        ("991231C1,00", date(1999, 12, 31)),
    ],
)
def test_two_digit_year_pivot(body, expected):
    assert parse_transaction_line(body).value_date == expected


@pytest.mark.parametrize(
    "body, exc",
    [
        ("25100C1,00", MalformedRecordError),
        ("251001X1,00", InvalidIndicatorError),
        ("251001C100NTRF", MalformedRecordError),
        ("251001C,50", MalformedRecordError),
        ("251341C1,00", InvalidDateError),
        ("2510011341C1,00", InvalidDateError),
    ],
)
def test_bad_transaction_lines(body, exc):
    with pytest.raises(exc) as ei:
        parse_transaction_line(body)
    assert ei.value.construct == ":61:"


# ---- Statement decode ----------------------------------------------------------


def test_decode_full_statement():
    st = _decode(
        ":20:STMT-1 ",
        ":25: DE0012345678",
        ":28C:00001/001",
        ":60F:C251001EUR1000,00",
        ":61:2510011001C100,00NTRFNONREF",
        ":86:Salary October",
        ":61:2510021002D25,5NTRFREF-2",
        ":62F:C251031EUR1074,50",
    )
    assert st.statement_id == "STMT-1"
    assert st.account_id == "DE0012345678"
    assert st.opening_balance == Balance(date(2025, 10, 1), Decimal("1000.00"), "EUR")
    assert st.closing_balance == Balance(date(2025, 10, 31), Decimal("1074.50"), "EUR")
    assert st.entries == (
        Entry(
            booking_date=date(2025, 10, 1),
            value_date=date(2025, 10, 1),
            amount=Decimal("100.00"),
            currency="EUR",
            dc=DebitCredit.CREDIT,
            description="Salary October",
        ),
        Entry(
            booking_date=date(2025, 10, 2),
            value_date=date(2025, 10, 2),
            amount=Decimal("25.5"),
            currency="EUR",
            dc=DebitCredit.DEBIT,
            reference="REF-2",
        ),
    )


def test_crlf_line_endings():
    st = _decode(":25:ACC", ":61:251001C1,00", ":86:Hi", newline="\r\n")
    assert st.account_id == "ACC"
    assert st.entries[0].description == "Hi"


def test_narrative_continuation_joined_with_space():
    st = _decode(
        ":25:ACC",
        ":61:251001C1,00NTRFNONREF",
        ":86:Part one",
        "part two",
        "",
        "  part three  ",
    )
    assert st.entries[0].description == "Part one part two part three"


def test_continuation_stops_at_next_transaction():
    st = _decode(
        ":25:ACC",
        ":61:251001C1,00",
        ":86:first",
        ":61:251002C2,00",
        "stray text",
    )
    assert [e.description for e in st.entries] == ["first", ""]


def test_second_narrative_appends():
    st = _decode(":25:ACC", ":61:251001C1,00", ":86:a", ":86:b")
    assert st.entries[0].description == "a b"


def test_narrative_before_any_entry_is_ignored():
    st = _decode(":25:ACC", ":86:orphan", "more", ":61:251001C1,00")
    assert st.entries[0].description == ""


def test_currency_falls_back_to_opening_balance():
    st = _decode(":25:ACC", ":60F:C251001EUR0,00", ":61:251001C1,00")
    assert st.entries[0].currency == "EUR"


def test_currency_unknown_without_opening_balance():
    st = _decode(":25:ACC", ":61:251001C1,00")
    assert st.entries[0].currency == "XXX"


def test_currency_on_line_overrides_opening_balance():
    st = _decode(":25:ACC", ":60F:C251001EUR0,00", ":61:251001CUSD1,00")
    assert st.entries[0].currency == "USD"


def test_debit_balance_is_negative():
    st = _decode(":25:ACC", ":60F:D251001EUR5,25", ":62F:C251031EUR0,")
    assert st.opening_balance.amount == Decimal("-5.25")
    assert st.closing_balance.amount == Decimal("0")


def test_short_balance_body_leaves_balance_unset():
    st = _decode(":25:ACC", ":60F:C2510", ":62F:")
    assert st.opening_balance is None
    assert st.closing_balance is None


def test_bad_balance_sign_and_amount():
    with pytest.raises(InvalidIndicatorError):
        _decode(":60F:X251001EUR1,00")
    with pytest.raises(InvalidAmountError):
        _decode(":62F:C251001EURabc")


def test_missing_statement_id_and_account():
    st = _decode(":61:251001C1,00")
    assert st.statement_id is None
    assert st.account_id == ""


# ---- Encode --------------------------------------------------------------------


def test_encode_salary_statement(salary_statement):
    assert _encode(salary_statement) == (
        ":20:STMT-2025-10\n"
        ":25:DE0012345678\n"
        ":60F:C251001EUR1000,00\n"
        ":61:2510011001C100,00NTRFNONREF\n"
        ":86:Salary October\n"
        ":62F:C251031EUR1100,00\n"
    )


def test_encode_without_id_or_balances():
    st = Statement(
        account_id="ACC",
        entries=(
            Entry(
                booking_date=date(2025, 1, 5),
                value_date=None,
                amount=Decimal("100"),
                currency="EUR",
                dc=DebitCredit.DEBIT,
                reference="R-9",
            ),
        ),
    )
    assert _encode(st) == ":20:NOTPROVIDED\n:25:ACC\n:61:2501050105D100,NTRFR-9\n"


def test_salary_statement_round_trip(salary_statement):
    decoded = CODEC.decode(io.BytesIO(_encode(salary_statement).encode("utf-8")))
    assert decoded == salary_statement


def test_mixed_statement_round_trip(mixed_statement):
    decoded = CODEC.decode(io.BytesIO(_encode(mixed_statement).encode("utf-8")))
    # A missing value date is written as the booking date.
    rent = dataclasses.replace(mixed_statement.entries[1], value_date=date(2025, 3, 5))
    expected = dataclasses.replace(
        mixed_statement,
        entries=(mixed_statement.entries[0], rent, mixed_statement.entries[2]),
    )
    assert decoded == expected


def test_balance_dates_use_same_year_pivot():
    st = _decode(":25:ACC", ":60F:C690101EUR1,00", ":62F:C700101EUR1,00")
    assert st.opening_balance.date == date(2069, 1, 1)
    assert st.closing_balance.date == date(1970, 1, 1)


def _single_entry(amount: str) -> Statement:
    return Statement(
        account_id="ACC",
        entries=(
            Entry(
                booking_date=date(2025, 1, 5),
                value_date=None,
                amount=Decimal(amount),
                currency="EUR",
                dc=DebitCredit.CREDIT,
                reference="R1",
            ),
        ),
    )


def test_encode_rejects_sub_cent_entry_amount():
    buf = io.BytesIO()
    with pytest.raises(InvalidAmountError) as ei:
        CODEC.encode(_single_entry("1.234"), buf)
    assert ei.value.construct == ":61: entry 1"
    assert buf.getvalue() == b""


def test_encode_drops_trailing_zero_beyond_cents():
    text = _encode(_single_entry("1.230"))
    assert ":61:2501050105C1,23NTRFR1" in text.splitlines()
    decoded = CODEC.decode(io.BytesIO(text.encode("utf-8")))
    assert decoded.entries[0].amount == Decimal("1.23")
    assert decoded.entries[0].reference == "R1"
