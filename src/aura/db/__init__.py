"""Database query composition (execution is delegated to the caller)."""

from aura.db.initiatives import QueryExecutor, build_initiatives_query, list_initiatives

__all__ = ["QueryExecutor", "build_initiatives_query", "list_initiatives"]
