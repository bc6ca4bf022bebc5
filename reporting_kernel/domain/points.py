"""
PointList -- ordered free-text bullet list stored as one text block.

Responsibility:
    Backs the "highlights" and "risks" sections of a ledger.  Callers see
    an ordered list with ``add`` and ``remove_at``; the stored form is a
    single newline-delimited string so the ledger record stays flat.

Invariants enforced:
    - No stored entry is empty or carries surrounding whitespace.
    - Blank lines in the stored text are ignored on read.
    - Adding blank text is a no-op (returns the same list).

Failure modes:
    - IndexError from ``remove_at`` when the index is out of range or is
      not an integer.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass

SEPARATOR = "\n"


def _normalize(text: str) -> str:
    # One entry per call: embedded line breaks would split it on read
    return " ".join(part.strip() for part in text.splitlines()).strip()


@dataclass(frozen=True, slots=True)
class PointList:
    """Immutable ordered list of short text entries."""

    text: str = ""

    @classmethod
    def of(cls, *items: str) -> PointList:
        result = cls()
        for item in items:
            result = result.add(item)
        return result

    @property
    def items(self) -> tuple[str, ...]:
        return tuple(
            line.strip() for line in self.text.split(SEPARATOR) if line.strip()
        )

    def add(self, text: str) -> PointList:
        """Append a trimmed entry; blank text leaves the list unchanged."""
        entry = _normalize(text or "")
        if not entry:
            return self
        return PointList(SEPARATOR.join((*self.items, entry)))

    def remove_at(self, index: int) -> PointList:
        """Delete the entry at ``index`` (zero-based)."""
        try:
            position = operator.index(index)
        except TypeError:
            raise IndexError(f"point index {index!r} is not an integer") from None
        items = self.items
        if not 0 <= position < len(items):
            raise IndexError(f"point index {position} out of range (size {len(items)})")
        return PointList(SEPARATOR.join(items[:position] + items[position + 1:]))

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
