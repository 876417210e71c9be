from __future__ import annotations

import re
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol, Sequence

import structlog

from .cases import TestCase, TestResult
from .errors import InvalidProblemIdError, MissingFieldError, ProblemNotFoundError
from .execution.engine import ExecutionEngine
from .languages import get_profile
from .runner import evaluate

logger = structlog.get_logger(__name__)

_PROBLEM_ID = re.compile(r"^[0-9a-fA-F]{24}$")


def is_valid_problem_id(value: object) -> bool:
    """Return True for 24-character hexadecimal identifiers.

    Example:
        ```python
        assert is_valid_problem_id("65a1f0c2e4b0a1b2c3d4e5f6")
        ```
    """
    return isinstance(value, str) and _PROBLEM_ID.match(value) is not None


def new_problem_id() -> str:
    """Generate a fresh 24-character hexadecimal identifier.

    Example:
        ```python
        problem_id = new_problem_id()
        ```
    """
    return secrets.token_hex(12)


@dataclass(frozen=True, slots=True)
class Problem:
    """A stored problem with its test cases and per-language starter code.

    Example:
        ```python
        problem = Problem(id=new_problem_id(), title="Sum", description="Add two ints",
                          difficulty="easy", test_cases=(TestCase("1 2", "3"),))
        ```
    """

    id: str
    title: str
    description: str
    difficulty: str
    test_cases: tuple[TestCase, ...]
    predefined_code: Mapping[str, str] = field(default_factory=dict)


class ProblemStore(Protocol):
    def find(self, problem_id: str) -> Problem | None:
        """Return the problem with `problem_id`, or None.

        Example:
            ```python
            problem = store.find("65a1f0c2e4b0a1b2c3d4e5f6")
            ```
        """
        ...


class InMemoryProblemStore:
    """Thread-safe problem store kept in process memory.

    Example:
        ```python
        store = InMemoryProblemStore()
        problem = store.add(title="Echo", description="Print the input", difficulty="easy",
                            test_cases=[TestCase("hi", "hi")], predefined_code={"python": ""})
        ```
    """

    def __init__(self, problems: Sequence[Problem] = ()) -> None:
        """Seed the store with existing problems.

        Example:
            ```python
            store = InMemoryProblemStore([problem])
            ```
        """
        self._lock = threading.Lock()
        self._problems: dict[str, Problem] = {problem.id: problem for problem in problems}

    def find(self, problem_id: str) -> Problem | None:
        """Return the problem with `problem_id`, or None.

        Example:
            ```python
            problem = store.find(problem_id)
            ```
        """
        with self._lock:
            return self._problems.get(problem_id)

    def list_problems(self) -> list[Problem]:
        """Return every stored problem in insertion order.

        Example:
            ```python
            titles = [p.title for p in store.list_problems()]
            ```
        """
        with self._lock:
            return list(self._problems.values())

    def add(
        self,
        *,
        title: str,
        description: str,
        difficulty: str,
        test_cases: Sequence[TestCase],
        predefined_code: Mapping[str, str],
    ) -> Problem:
        """Store a new problem; every field is required.

        Example:
            ```python
            problem = store.add(title="Sum", description="...", difficulty="easy",
                                test_cases=[TestCase("1 2", "3")], predefined_code={"c": ""})
            ```
        """
        provided = {
            "title": title,
            "description": description,
            "difficulty": difficulty,
            "testCases": test_cases,
            "predefinedCode": predefined_code,
        }
        missing = [name for name, value in provided.items() if not value]
        if missing:
            raise MissingFieldError(missing)
        problem = Problem(
            id=new_problem_id(),
            title=title,
            description=description,
            difficulty=difficulty,
            test_cases=tuple(test_cases),
            predefined_code=dict(predefined_code),
        )
        with self._lock:
            self._problems[problem.id] = problem
        logger.info("problem_added", problem_id=problem.id, cases=len(problem.test_cases))
        return problem

    def delete(self, problem_id: str) -> Problem:
        """Remove and return a problem.

        Example:
            ```python
            removed = store.delete(problem_id)
            ```
        """
        if not is_valid_problem_id(problem_id):
            raise InvalidProblemIdError(problem_id)
        with self._lock:
            problem = self._problems.pop(problem_id, None)
        if problem is None:
            raise ProblemNotFoundError(problem_id)
        logger.info("problem_deleted", problem_id=problem_id)
        return problem


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    """Outcome of judging one submission against its problem.

    Example:
        ```python
        body = submit_code(store, {"problemId": pid, "language": "python", "code": src}, engine).to_dict()
        ```
    """

    problem_id: str
    language: str
    code: str
    test_results: tuple[TestResult, ...]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Render the response body: `{"testResults": [...]}`.

        Example:
            ```python
            payload = result.to_dict()
            ```
        """
        return {"testResults": [item.to_dict() for item in self.test_results]}


def submit_code(
    store: ProblemStore,
    request: Mapping[str, Any],
    engine: ExecutionEngine,
    timeout_ms: int | None = None,
) -> SubmissionResult:
    """Validate a submission request, load its problem and judge the code.

    Every validation happens before the engine is touched: missing fields,
    malformed problem ids, unsupported languages and unknown problems raise.

    Example:
        ```python
        result = submit_code(store, {"problemId": pid, "language": "c", "code": src}, engine=LocalEngine())
        ```
    """
    missing = [name for name in ("problemId", "language", "code") if not request.get(name)]
    problem_id = request.get("problemId")
    if "problemId" not in missing and not is_valid_problem_id(problem_id):
        raise InvalidProblemIdError(problem_id)
    if missing:
        raise MissingFieldError(missing)

    language = str(request["language"])
    get_profile(language)
    problem = store.find(str(problem_id))
    if problem is None:
        raise ProblemNotFoundError(str(problem_id))

    code = str(request["code"])
    logger.info(
        "submission_received",
        problem_id=problem.id,
        language=language,
        cases=len(problem.test_cases),
    )
    results = evaluate(language, code, problem.test_cases, engine=engine, timeout_ms=timeout_ms)
    return SubmissionResult(
        problem_id=problem.id,
        language=language,
        code=code,
        test_results=tuple(results),
    )
