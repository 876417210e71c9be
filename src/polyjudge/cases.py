from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping


@dataclass(frozen=True, slots=True)
class TestCase:
    """One (input, expected output) pair a submission is judged against.

    Example:
        ```python
        case = TestCase(input="2 3", expected_output="5")
        ```
    """

    __test__ = False

    input: str
    expected_output: str

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "TestCase":
        """Build a test case from a camelCase or snake_case mapping.

        Example:
            ```python
            case = TestCase.from_dict({"input": "1", "expectedOutput": "1"})
            ```
        """
        expected = raw.get("expectedOutput", raw.get("expected_output"))
        if expected is None:
            raise ValueError("Test case requires 'expectedOutput'")
        return cls(input=str(raw.get("input") or ""), expected_output=str(expected))


@dataclass(frozen=True, slots=True)
class TestResult:
    """Verdict for one test case.

    Example:
        ```python
        result = TestResult(input="1", expected_output="1", actual_output="1", passed=True)
        ```
    """

    __test__ = False

    input: str
    expected_output: str
    actual_output: str
    passed: bool

    def to_dict(self) -> dict[str, Any]:
        """Render the result with the camelCase keys used in responses.

        Example:
            ```python
            payload = result.to_dict()  # {"input": ..., "expectedOutput": ..., ...}
            ```
        """
        return {
            "input": self.input,
            "expectedOutput": self.expected_output,
            "actualOutput": self.actual_output,
            "passed": self.passed,
        }


@dataclass(frozen=True, slots=True)
class ResultSummary:
    """Pass/fail counts over a result list.

    Example:
        ```python
        summary = summarize(results)
        ```
    """

    total: int
    passed: int
    failed: int

    @property
    def all_passed(self) -> bool:
        """Return True when there is at least one result and none failed.

        Example:
            ```python
            if summarize(results).all_passed: ...
            ```
        """
        return self.total > 0 and self.failed == 0


def summarize(results: Iterable[TestResult]) -> ResultSummary:
    """Count passed and failed results.

    Example:
        ```python
        summary = summarize(evaluate("python", code, cases, engine=engine))
        ```
    """
    items = list(results)
    passed = sum(1 for item in items if item.passed)
    return ResultSummary(total=len(items), passed=passed, failed=len(items) - passed)
