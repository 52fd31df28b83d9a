"""Pytest configuration shared by the codec tests.

Puts the workspace ``packages/`` directory on ``sys.path`` so
``statement_codecs`` is importable without installation, provides the
canonical example statement, and resets the package logger between tests so
``configure_logging`` (called by the CLI root callback) starts fresh each time.
"""

from __future__ import annotations

import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
# Ensure `packages/` precedes the repo root on sys.path so local packages resolve first.
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

from statement_codecs.logging_setup import reset_logging  # noqa: E402
from statement_codecs.models import Balance, DebitCredit, Entry, Statement  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def salary_statement() -> Statement:
    """One credit of 100.00 EUR on 2025-10-01 with both balances set."""

    return Statement(
        account_id="DE0012345678",
        statement_id="STMT-2025-10",
        opening_balance=Balance(date=date(2025, 10, 1), amount=Decimal("1000.00"), currency="EUR"),
        closing_balance=Balance(date=date(2025, 10, 31), amount=Decimal("1100.00"), currency="EUR"),
        entries=(
            Entry(
                booking_date=date(2025, 10, 1),
                value_date=date(2025, 10, 1),
                amount=Decimal("100.00"),
                currency="EUR",
                dc=DebitCredit.CREDIT,
                description="Salary October",
            ),
        ),
    )


@pytest.fixture
def mixed_statement() -> Statement:
    """Several entries in both directions, a negative opening balance and references."""

    return Statement(
        account_id="NL91ABNA0417164300",
        statement_id="2025/117",
        opening_balance=Balance(date=date(2025, 3, 1), amount=Decimal("-250.10"), currency="EUR"),
        closing_balance=Balance(date=date(2025, 3, 31), amount=Decimal("1639.40"), currency="EUR"),
        entries=(
            Entry(
                booking_date=date(2025, 3, 3),
                value_date=date(2025, 3, 2),
                amount=Decimal("2500.00"),
                currency="EUR",
                dc=DebitCredit.CREDIT,
                description="Salary March",
                reference="PAY-0301",
            ),
            Entry(
                booking_date=date(2025, 3, 5),
                value_date=None,
                amount=Decimal("610.5"),
                currency="EUR",
                dc=DebitCredit.DEBIT,
                description="Rent, flat 3",
                reference=None,
            ),
            Entry(
                booking_date=date(2025, 3, 28),
                value_date=date(2025, 3, 28),
                amount=Decimal("0"),
                currency="EUR",
                dc=DebitCredit.DEBIT,
                description="",
                reference="FEE-WAIVED",
            ),
        ),
    )
