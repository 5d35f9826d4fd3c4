# file_search_qa/jobs/operation.py

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class OperationStatus(Enum):
    """
    Status of a remote long-running job.

    DONE and FAILED are terminal: once observed, a poll session
    never moves an operation out of them.
    """

    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not OperationStatus.PENDING


@dataclass(frozen=True)
class OperationError:
    message: str
    code: Optional[str] = None


@dataclass(frozen=True)
class Operation:
    """
    Handle for a remote asynchronous job and its last observed state.

    Built only from what the remote service reports; the poller
    never computes a status itself.
    """

    name: str
    status: OperationStatus
    payload: Any = None
    error: Optional[OperationError] = None

    def __post_init__(self):

        if not self.name:
            raise ValueError("Operation name must not be empty")

        if self.status is OperationStatus.DONE and self.error is not None:
            raise ValueError("A done operation cannot carry an error")

        if self.status is OperationStatus.FAILED:
            if self.error is None:
                raise ValueError("A failed operation must carry an error")
            if self.payload is not None:
                raise ValueError("A failed operation cannot carry a payload")

        if self.status is OperationStatus.PENDING:
            if self.payload is not None or self.error is not None:
                raise ValueError("A pending operation has neither payload nor error")

    @classmethod
    def pending(cls, name: str) -> "Operation":
        return cls(name=name, status=OperationStatus.PENDING)

    @classmethod
    def done(cls, name: str, payload: Any = None) -> "Operation":
        return cls(name=name, status=OperationStatus.DONE, payload=payload)

    @classmethod
    def failed(cls, name: str, message: str, code: Optional[str] = None) -> "Operation":
        return cls(
            name=name,
            status=OperationStatus.FAILED,
            error=OperationError(message=message, code=code),
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
