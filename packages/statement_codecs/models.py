"""Canonical statement model shared by every codec.

Every format decodes into, and encodes from, the same three value objects:

- :class:`Statement`: identity, account, optional opening/closing balances and
  the ordered entries.
- :class:`Entry`: one transaction line.
- :class:`Balance`: one dated monetary snapshot.

Sign conventions (exact)
------------------------
- ``Entry.amount`` is an unsigned magnitude (always ``>= 0``). Direction is
  carried exclusively by ``Entry.dc``.
- ``Balance.amount`` is signed and there is no separate indicator.

All amounts are :class:`decimal.Decimal`; floats are never accepted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class DebitCredit(Enum):
    """Whether an entry decreases (``DEBIT``) or increases (``CREDIT``) the account."""

    DEBIT = "D"
    CREDIT = "C"

    @property
    def letter(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Balance:
    """A dated, signed balance snapshot."""

    date: date
    amount: Decimal
    currency: str

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise TypeError("Balance.amount must be a Decimal")


@dataclass(frozen=True, slots=True)
class Entry:
    """A single statement entry.

    Attributes
    ----------
    booking_date:
        Date the entry was booked (required).
    value_date:
        Optional value (settlement) date.
    amount:
        Unsigned magnitude. Negative values are rejected; use ``dc`` for
        direction.
    currency:
        Three-letter currency code, not validated.
    dc:
        Debit/credit indicator.
    description:
        Free text, possibly empty. Multi-segment narratives are space-joined.
    reference:
        Optional entry reference.
    """

    booking_date: date
    value_date: date | None
    amount: Decimal
    currency: str
    dc: DebitCredit
    description: str = ""
    reference: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise TypeError("Entry.amount must be a Decimal")
        if self.amount.is_signed() and self.amount != 0:
            raise ValueError(f"Entry.amount must be unsigned, got {self.amount}")


@dataclass(frozen=True, slots=True)
class Statement:
    """One bank statement held fully in memory.

    ``entries`` keeps the encounter order of the source document and is stored
    as a tuple so that a decoded statement can't be changed behind an
    encoder's back.
    """

    account_id: str
    statement_id: str | None = None
    opening_balance: Balance | None = None
    closing_balance: Balance | None = None
    entries: tuple[Entry, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.entries, tuple):
            object.__setattr__(self, "entries", tuple(self.entries))


__all__ = ["Balance", "DebitCredit", "Entry", "Statement"]
