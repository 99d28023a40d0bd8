from __future__ import annotations

import json
from typing import Any, Optional


def insert_audit_log(
    cur,
    *,
    user_id: int,
    action: str,
    table_name: str,
    record_id: Optional[int],
    new_value: Optional[dict[str, Any]] = None,
) -> None:
    """Append an audit row on the caller's cursor so it shares the caller's transaction."""
    cur.execute(
        """
        INSERT INTO audit_logs(user_id, action, table_name, record_id, new_value)
        VALUES(%s,%s,%s,%s,%s)
        """,
        (
            int(user_id),
            action,
            table_name,
            record_id,
            json.dumps(new_value) if new_value is not None else None,
        ),
    )
