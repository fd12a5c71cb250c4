"""Document numbering: pure functions, zero external dependencies."""

from __future__ import annotations

from datetime import date


def next_document_number(prefix: str, existing: list[str], today: date) -> str:
    """Return ``PREFIX-YYYYMMDD-NNNN`` following the highest number used today.

    Numbers that do not follow the pattern are ignored.
    """
    stem = f"{prefix}-{today.strftime('%Y%m%d')}-"
    seq = 0
    for number in existing:
        if not number or not number.startswith(stem):
            continue
        try:
            seq = max(seq, int(number[len(stem):]))
        except ValueError:
            continue
    return f"{stem}{seq + 1:04d}"
