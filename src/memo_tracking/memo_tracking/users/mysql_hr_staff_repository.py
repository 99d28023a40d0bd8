from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, like_pattern
from .hr_staff_model import HRStaff
from .hr_staff_repository import HRStaffRepository


class MySQLHRStaffRepository(HRStaffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_line_manager_staff_id(self, staff_id: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT LineManagerID FROM hr_staff WHERE StaffID=%s", (staff_id,))
            row = fetchone(cur)
            if not row:
                return None
            return row.get("LineManagerID") or None

    def search(self, term: str, *, limit: int) -> Sequence[HRStaff]:
        pattern = like_pattern(term)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT StaffID, FirstName, MiddleName, Surname, OfficialEmailAddress, DepartmentCode, LineManagerID
                FROM hr_staff
                WHERE (FirstName LIKE %s OR Surname LIKE %s OR StaffID LIKE %s OR OfficialEmailAddress LIKE %s)
                  AND IsActive = 1
                ORDER BY Surname, FirstName
                LIMIT %s
                """,
                (pattern, pattern, pattern, pattern, int(limit)),
            )
            return [
                HRStaff(
                    staff_id=r["StaffID"],
                    first_name=r["FirstName"],
                    middle_name=r.get("MiddleName"),
                    surname=r["Surname"],
                    email=r.get("OfficialEmailAddress"),
                    department_code=r.get("DepartmentCode"),
                    line_manager_staff_id=r.get("LineManagerID"),
                )
                for r in fetchall(cur)
            ]
