from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from errors import RepositoryWriteError


class StepStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    NOT_AFFILIATE = "not_affiliate"
    ALREADY_PROCESSED = "already_processed"
    NO_APPLICABLE_RATE = "no_applicable_rate"
    NO_REFERRER = "no_referrer"
    WRITE_FAILURE = "write_failure"
    IGNORED = "ignored"
    ERROR = "error"


SKIP_STATUSES = {
    StepStatus.NOT_FOUND,
    StepStatus.NOT_AFFILIATE,
    StepStatus.ALREADY_PROCESSED,
    StepStatus.NO_APPLICABLE_RATE,
    StepStatus.NO_REFERRER,
    StepStatus.IGNORED,
}


@dataclass
class WriteFailure:
    operation: str
    table: str
    payload: Dict[str, Any]
    error: str

    @classmethod
    def from_error(cls, exc: RepositoryWriteError) -> "WriteFailure":
        return cls(operation=exc.operation, table=exc.table, payload=dict(exc.payload), error=exc.detail)


@dataclass
class StepResult:
    step: str
    status: StepStatus = StepStatus.OK
    message: str = ""
    notes: List[str] = field(default_factory=list)
    failures: List[WriteFailure] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def fail(self, exc: RepositoryWriteError) -> None:
        self.status = StepStatus.WRITE_FAILURE
        self.failures.append(WriteFailure.from_error(exc))


@dataclass
class EventResult:
    order_id: int
    new_status: str
    old_status: Optional[str] = None
    customer_id: Optional[int] = None
    status: StepStatus = StepStatus.OK
    message: str = ""
    steps: List[StepResult] = field(default_factory=list)

    def step(self, name: str) -> Optional[StepResult]:
        for result in self.steps:
            if result.step == name:
                return result
        return None

    @property
    def has_failures(self) -> bool:
        return any(result.failures for result in self.steps)
