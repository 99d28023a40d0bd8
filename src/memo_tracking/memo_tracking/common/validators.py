from __future__ import annotations

import re
from typing import Iterable, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters long")
    return value


def require_email(value: str, field_name: str = "Email") -> str:
    v = require_non_empty(value, field_name).lower()
    if not _EMAIL_RE.match(v):
        raise ValidationError(f"{field_name} is not a valid email address")
    return v


def require_enum(enum_cls: Type[E], value, field_name: str) -> E:
    try:
        return enum_cls(value)  # type: ignore[call-arg]
    except ValueError:
        raise ValidationError(f"{field_name} is not valid")


def unique_ids(values: Iterable) -> list[int]:
    """Coerce to positive ints, dropping duplicates while keeping order."""
    out: list[int] = []
    for v in values:
        try:
            i = int(v)
        except (TypeError, ValueError):
            raise ValidationError("Invalid user id in selection")
        if i > 0 and i not in out:
            out.append(i)
    return out
