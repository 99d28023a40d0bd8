from __future__ import annotations

from datetime import date

import pytest

from src.memo_tracking.memo_tracking.common.datetime_utils import last_n_months, parse_optional_date
from src.memo_tracking.memo_tracking.common.validators import require_email, require_enum, unique_ids
from src.memo_tracking.memo_tracking.core.enums import MemoType
from src.memo_tracking.memo_tracking.core.exceptions import ValidationError
from src.memo_tracking.memo_tracking.database.mysql_base import like_pattern


def test_unique_ids_keeps_order_and_drops_duplicates():
    assert unique_ids(["3", 1, "3", 0, 2]) == [3, 1, 2]


def test_unique_ids_rejects_garbage():
    with pytest.raises(ValidationError):
        unique_ids(["abc"])


def test_require_email_lowercases():
    assert require_email(" Admin@University.EDU ") == "admin@university.edu"
    with pytest.raises(ValidationError):
        require_email("not-an-email")


def test_require_enum():
    assert require_enum(MemoType, "Approval", "Memo type") == MemoType.APPROVAL
    with pytest.raises(ValidationError):
        require_enum(MemoType, "approval", "Memo type")


def test_parse_optional_date():
    assert parse_optional_date("", "Expiry date") is None
    assert parse_optional_date("2026-05-01", "Expiry date") == date(2026, 5, 1)
    with pytest.raises(ValidationError):
        parse_optional_date("01/05/2026", "Expiry date")


def test_last_n_months_crosses_year_boundary():
    months = last_n_months(date(2026, 2, 15), 3)
    assert months == [date(2025, 12, 1), date(2026, 1, 1), date(2026, 2, 1)]


def test_like_pattern_escapes_wildcards():
    assert like_pattern("50%_off") == "%50\\%\\_off%"
    assert like_pattern("IMTS/2026/HR/", starts_with=True) == "IMTS/2026/HR/%"
