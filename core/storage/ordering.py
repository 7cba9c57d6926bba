from __future__ import annotations

from typing import Mapping

from sqlalchemy import asc, desc


def apply_order(stmt, sort: str | None, allowed: Mapping[str, object], default: str):
    """Order ``stmt`` by a sort spec such as ``"title"`` or ``"-dueDate"``.

    A leading ``-`` means descending. ``allowed`` maps public field names to
    columns; an unknown field raises ``ValueError``.
    """
    field = sort or default
    if field.startswith("-"):
        key = field[1:]
        direction = desc
    else:
        key = field
        direction = asc
    if key not in allowed:
        allowed_cols = ", ".join(sorted(allowed.keys()))
        raise ValueError(f"sort field must be one of: {allowed_cols}")
    return stmt.order_by(direction(allowed[key]))
