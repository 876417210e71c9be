from __future__ import annotations

from typing import Iterable

import structlog

from .cases import TestCase, TestResult
from .execution.engine import ExecutionEngine
from .execution.types import ErrorKind, ExecutionOutcome, ExecutionRequest
from .languages import get_profile

logger = structlog.get_logger(__name__)


def execute_code(
    code: str,
    language: str,
    engine: ExecutionEngine,
    input_text: str = "",
    timeout_ms: int | None = None,
) -> ExecutionOutcome:
    """Execute one program with the given engine.

    Example:
        ```python
        from polyjudge import LocalEngine, execute_code
        outcome = execute_code("print(input())", "python", engine=LocalEngine(), input_text="hello")
        ```
    """
    get_profile(language)
    return engine.execute(
        ExecutionRequest(code=code, language=language, input=input_text, timeout_ms=timeout_ms)
    )


def _error_text(outcome: ExecutionOutcome) -> str:
    """Render a failed outcome the way results report it.

    Example:
        ```python
        text = _error_text(ExecutionOutcome.failure(ErrorKind.RUNTIME_ERROR, "boom"))
        ```
    """
    return f"Error executing code: {outcome.message}"


def evaluate(
    language: str,
    code: str,
    test_cases: Iterable[TestCase],
    engine: ExecutionEngine,
    timeout_ms: int | None = None,
) -> list[TestResult]:
    """Run `code` once per test case, in order, and judge each output.

    Outputs are compared after trimming surrounding whitespace. A failed
    execution, or an engine that raises, marks only its own case as failed;
    the remaining cases still run. Raises `UnsupportedLanguageError` before running anything when the
    language is unknown.

    Example:
        ```python
        cases = [TestCase("2 3", "5"), TestCase("10 -4", "6")]
        results = evaluate("python", "a, b = map(int, input().split())\\nprint(a + b)", cases, engine=engine)
        ```
    """
    get_profile(language)
    results: list[TestResult] = []
    for index, case in enumerate(test_cases):
        request = ExecutionRequest(code=code, language=language, input=case.input, timeout_ms=timeout_ms)
        try:
            outcome = engine.execute(request)
        except Exception as exc:
            logger.exception("engine_raised", index=index, language=language)
            outcome = ExecutionOutcome.failure(ErrorKind.RUNTIME_ERROR, str(exc) or type(exc).__name__)
        if outcome.ok:
            actual = outcome.output.strip()
            passed = actual == case.expected_output.strip()
        else:
            actual = _error_text(outcome)
            passed = False
        logger.debug(
            "test_case_judged",
            index=index,
            passed=passed,
            kind=outcome.kind.value if outcome.kind else None,
        )
        results.append(
            TestResult(
                input=case.input,
                expected_output=case.expected_output,
                actual_output=actual,
                passed=passed,
            )
        )
    return results
