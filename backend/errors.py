from typing import Any, Dict, Optional


class RepositoryWriteError(RuntimeError):
    """A write against a storage table failed.

    Carries the attempted operation, table and payload so the caller can log
    them next to the underlying error.
    """

    def __init__(
        self,
        table: str,
        operation: str,
        payload: Optional[Dict[str, Any]] = None,
        detail: str = "",
    ) -> None:
        self.table = table
        self.operation = operation
        self.payload = payload or {}
        self.detail = detail
        super().__init__(f"{operation} on {table} failed: {detail}")


class DuplicateCommissionError(RepositoryWriteError):
    """The commission table already holds a row for this order/affiliate pair."""
