"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the calendar and monetary primitives every reporting
    computation relies on: ``CalendarMonth`` (one reporting month, with its
    absolute month index, first day and submission deadline) and
    ``parse_amount`` (the single entry point that turns user input into a
    ``Decimal``).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Absolute month index is ``year * 12 + (month - 1)``; propagation
      distances are plain integer differences of these indexes.
    - The deadline of a month is its last instant, 23:59:59.999.
    - Amounts are Decimal, finite and non-negative.  Unparsable input is
      rejected, never coerced to zero.

Failure modes:
    - InvalidMonthLabelError on labels that are not "<Month name> <year>".
    - InvalidAmountError on unparsable, non-finite or negative amounts.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from reporting_kernel.exceptions import InvalidAmountError, InvalidMonthLabelError

_MONTH_NUMBERS: dict[str, int] = {
    name.lower(): number
    for number, name in enumerate(calendar.month_name)
    if name
}
_MONTH_NUMBERS.update(
    {
        abbr.lower(): number
        for number, abbr in enumerate(calendar.month_abbr)
        if abbr
    }
)


@dataclass(frozen=True, slots=True, order=True)
class CalendarMonth:
    """
    One calendar month.

    Contract:
        Ordering follows the calendar.  ``index`` is the absolute month
        index used by recurring-expense propagation.

    Guarantees:
        - Immutable and hashable
        - ``1 <= month <= 12``
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month out of range: {self.month}")

    @classmethod
    def parse(cls, label: str) -> CalendarMonth:
        """Parse a label such as ``"October 2023"`` or ``"Oct 2023"``."""
        parts = label.split() if isinstance(label, str) else []
        if len(parts) != 2:
            raise InvalidMonthLabelError(str(label))
        name, year_text = parts
        month = _MONTH_NUMBERS.get(name.lower())
        if month is None or not year_text.isdigit():
            raise InvalidMonthLabelError(label)
        return cls(int(year_text), month)

    @classmethod
    def from_index(cls, index: int) -> CalendarMonth:
        year, zero_based = divmod(index, 12)
        return cls(year, zero_based + 1)

    @classmethod
    def of(cls, value: date) -> CalendarMonth:
        return cls(value.year, value.month)

    @property
    def index(self) -> int:
        """Absolute month index: ``year * 12 + monthIndex``."""
        return self.year * 12 + (self.month - 1)

    @property
    def label(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def opens_at(self) -> datetime:
        """First instant of the month."""
        return datetime(self.year, self.month, 1)

    @property
    def deadline(self) -> datetime:
        """Last instant of the month (23:59:59.999)."""
        last_day = calendar.monthrange(self.year, self.month)[1]
        return datetime(self.year, self.month, last_day, 23, 59, 59, 999000)

    def shifted(self, months: int) -> CalendarMonth:
        return CalendarMonth.from_index(self.index + months)

    def __str__(self) -> str:
        return self.label


def parse_amount(raw: object) -> Decimal:
    """
    Parse user input into a monetary amount.

    Accepts ``Decimal``, ``int`` and numeric strings (surrounding
    whitespace and thousands separators are tolerated).  ``float`` is
    converted through its string form.

    Raises:
        InvalidAmountError: if the value is empty, not numeric, not
            finite, or negative.
    """
    if isinstance(raw, bool):
        raise InvalidAmountError(raw, "not a number")
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        text = raw.strip().replace(",", "")
        if not text:
            raise InvalidAmountError(raw, "empty")
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise InvalidAmountError(raw, "not a number") from None
    else:
        raise InvalidAmountError(raw, "not a number")

    if not value.is_finite():
        raise InvalidAmountError(raw, "not finite")
    if value < 0:
        raise InvalidAmountError(raw, "negative")
    return value
