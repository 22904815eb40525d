"""Per-call operation results returned by the dispatcher."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd

from unidb.db.models import Row, rows_to_dataframe


class ErrorKind(str, Enum):
    """Failure categories reported by dispatcher operations."""
    NULL_INPUT = "null_input"
    UNKNOWN_BACKEND_TYPE = "unknown_backend_type"
    CONNECTION_FAILURE = "connection_failure"
    BACKEND_OPERATION_FAILURE = "backend_operation_failure"
    UNSUPPORTED_OPERATION = "unsupported_operation"


@dataclass(frozen=True)
class DBError:
    """Structured error attached to a failed operation."""

    kind: ErrorKind
    message: str
    code: Optional[str] = None
    backend: Optional[str] = None

    def __str__(self) -> str:
        if self.code:
            return f"{self.kind.value} [{self.code}]: {self.message}"
        return f"{self.kind.value}: {self.message}"


@dataclass
class OperationResult:
    """Outcome of one dispatcher call.

    Truthy on success. Fetches also carry ``rows`` and ``row_count``.
    """

    ok: bool
    error: Optional[DBError] = None
    rows: List[Row] = field(default_factory=list)
    row_count: int = 0

    @classmethod
    def success(cls, rows: Optional[List[Row]] = None) -> "OperationResult":
        rows = rows if rows is not None else []
        return cls(ok=True, rows=rows, row_count=len(rows))

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        code: Optional[str] = None,
        backend: Optional[str] = None,
    ) -> "OperationResult":
        return cls(ok=False, error=DBError(kind=kind, message=message, code=code, backend=backend))

    def __bool__(self) -> bool:
        return self.ok

    def to_dataframe(self) -> pd.DataFrame:
        """Fetched rows as a DataFrame."""
        return rows_to_dataframe(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': self.ok,
            'error': None if self.error is None else {
                'kind': self.error.kind.value,
                'code': self.error.code,
                'message': self.error.message,
                'backend': self.error.backend,
            },
            'row_count': self.row_count,
        }
