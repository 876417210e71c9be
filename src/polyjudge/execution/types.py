from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a failed execution.

    Example:
        ```python
        kind = ErrorKind.TIMEOUT_ERROR
        ```
    """

    IO_ERROR = "io_error"
    COMPILE_ERROR = "compile_error"
    RUNTIME_ERROR = "runtime_error"
    TIMEOUT_ERROR = "timeout_error"


@dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """Normalized request sent to an execution engine.

    `timeout_ms` of None means the engine's configured default.

    Example:
        ```python
        req = ExecutionRequest(code="print(input())", language="python", input="hello")
        ```
    """

    code: str
    language: str
    input: str = ""
    timeout_ms: int | None = None


@dataclass(frozen=True, slots=True)
class ExecutionOutcome:
    """Normalized response returned by an execution engine.

    Successful outcomes carry `output`; failed ones carry `kind` and `message`.

    Example:
        ```python
        out = ExecutionOutcome.success("42\\n")
        err = ExecutionOutcome.failure(ErrorKind.RUNTIME_ERROR, "Traceback ...")
        ```
    """

    ok: bool
    output: str = ""
    kind: ErrorKind | None = None
    message: str = ""
    returncode: int | None = None
    duration_ms: int = 0

    @classmethod
    def success(cls, output: str, *, returncode: int = 0, duration_ms: int = 0) -> "ExecutionOutcome":
        """Build a successful outcome.

        Example:
            ```python
            out = ExecutionOutcome.success("hello\\n")
            ```
        """
        return cls(ok=True, output=output, returncode=returncode, duration_ms=duration_ms)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        *,
        returncode: int | None = None,
        duration_ms: int = 0,
    ) -> "ExecutionOutcome":
        """Build a classified failure outcome.

        Example:
            ```python
            out = ExecutionOutcome.failure(ErrorKind.IO_ERROR, "disk full")
            ```
        """
        return cls(
            ok=False,
            kind=kind,
            message=message,
            returncode=returncode,
            duration_ms=duration_ms,
        )

    @property
    def timed_out(self) -> bool:
        """Return True for timeout failures.

        Example:
            ```python
            if outcome.timed_out: ...
            ```
        """
        return self.kind is ErrorKind.TIMEOUT_ERROR
