from __future__ import annotations

from typing import Protocol

from .types import ExecutionOutcome, ExecutionRequest


class ExecutionEngine(Protocol):
    def execute(self, request: ExecutionRequest) -> ExecutionOutcome:
        """Execute one request and return a classified execution outcome.

        Implementations never raise for execution failures; they return
        `ExecutionOutcome.failure(...)` instead.

        Example:
            ```python
            outcome = engine.execute(ExecutionRequest(code="print(1)", language="python"))
            ```
        """
        ...
