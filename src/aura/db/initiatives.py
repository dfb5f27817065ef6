"""Initiatives listing query.

The database itself is an external collaborator reached through an
`execute(sql, params) -> rows` capability. This module only composes the
allow-listed query: equality filters joined with AND and a fixed ordering.
Filter values are always bound as positional parameters.
"""

import logging
from collections.abc import Sequence
from typing import Any, Protocol

logger = logging.getLogger(__name__)

_BASE_QUERY = "SELECT * FROM initiatives"
_ORDER_BY = " ORDER BY created_at DESC"


class QueryExecutor(Protocol):
    """Anything that can run a parameterized query."""

    def execute(self, sql: str, params: Sequence[Any]) -> list[dict[str, Any]]: ...


def build_initiatives_query(
    business_brief_id: str | None = None,
    status: str | None = None,
) -> tuple[str, list[Any]]:
    """Compose the initiatives query.

    Args:
        business_brief_id: Only initiatives under this business brief
        status: Only initiatives in this status

    Returns:
        (sql, params) with one "?" placeholder per param
    """
    conditions: list[str] = []
    params: list[Any] = []

    if business_brief_id:
        conditions.append("business_brief_id = ?")
        params.append(business_brief_id)
    if status:
        conditions.append("status = ?")
        params.append(status)

    sql = _BASE_QUERY
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)
    sql += _ORDER_BY

    return sql, params


def list_initiatives(
    executor: QueryExecutor,
    business_brief_id: str | None = None,
    status: str | None = None,
) -> dict[str, Any]:
    """Fetch initiatives and wrap them in a response envelope.

    Returns:
        {success, data, count, message} or {success: False, error, message}
    """
    sql, params = build_initiatives_query(business_brief_id, status)

    try:
        rows = executor.execute(sql, params)
    except Exception as e:
        logger.error("Error fetching initiatives: %s", e)
        return {
            "success": False,
            "error": "Failed to fetch initiatives",
            "message": str(e) or "Unknown error",
        }

    logger.info("Retrieved %d initiatives from database", len(rows))
    return {
        "success": True,
        "data": rows,
        "count": len(rows),
        "message": "Initiatives retrieved successfully",
    }
