"""Reference numbers: IMTS/<YYYY>/<DEPT>/<SEQ>, e.g. IMTS/2026/HR/001."""

from __future__ import annotations

from typing import Optional

from ..core.constants import REFERENCE_DEPT_CODE_LENGTH, REFERENCE_PREFIX, REFERENCE_SEQUENCE_WIDTH


def department_code(department: str) -> str:
    return (department or "").strip().upper()[:REFERENCE_DEPT_CODE_LENGTH]


def reference_prefix(*, year: int, department: str) -> str:
    return f"{REFERENCE_PREFIX}/{int(year)}/{department_code(department)}/"


def next_reference_number(*, year: int, department: str, last_reference: Optional[str]) -> str:
    """Sequence is the last one issued for the same year and department, plus one.

    A missing or malformed previous reference restarts the sequence at 1.
    """
    next_sequence = 1
    if last_reference:
        tail = last_reference.rsplit("/", 1)[-1]
        if tail.isdigit():
            next_sequence = int(tail) + 1

    return f"{reference_prefix(year=year, department=department)}{next_sequence:0{REFERENCE_SEQUENCE_WIDTH}d}"
