from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .hr_staff_model import HRStaff


class HRStaffRepository(Protocol):
    def get_line_manager_staff_id(self, staff_id: str) -> Optional[str]:
        raise NotImplementedError

    def search(self, term: str, *, limit: int) -> Sequence[HRStaff]:
        raise NotImplementedError
