from __future__ import annotations

from src.memo_tracking.memo_tracking.memos.reference import department_code, next_reference_number, reference_prefix


def test_department_code_is_first_four_upper_chars():
    assert department_code(" Registry ") == "REGI"
    assert department_code("hr") == "HR"


def test_first_reference_of_the_year():
    assert next_reference_number(year=2026, department="HR", last_reference=None) == "IMTS/2026/HR/001"


def test_sequence_increments_from_last_reference():
    assert (
        next_reference_number(year=2026, department="Bursary", last_reference="IMTS/2026/BURS/041")
        == "IMTS/2026/BURS/042"
    )


def test_sequence_grows_past_padding_width():
    assert next_reference_number(year=2026, department="HR", last_reference="IMTS/2026/HR/999") == "IMTS/2026/HR/1000"


def test_malformed_last_reference_restarts_at_one():
    assert next_reference_number(year=2026, department="HR", last_reference="IMTS/2026/HR/abc") == "IMTS/2026/HR/001"


def test_prefix_matches_reference_format():
    assert reference_prefix(year=2025, department="Academic Affairs") == "IMTS/2025/ACAD/"
