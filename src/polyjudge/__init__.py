from .cases import ResultSummary, TestCase, TestResult, summarize
from .errors import (
    InvalidProblemIdError,
    MissingFieldError,
    PolyjudgeError,
    ProblemNotFoundError,
    UnsupportedLanguageError,
)
from .languages import Language, LanguageProfile, get_profile, supported_languages
from .execution.config import EngineSettings, Toolchain
from .execution.local_engine import LocalEngine
from .execution.types import ErrorKind, ExecutionOutcome, ExecutionRequest
from .runner import evaluate, execute_code
from .submission import InMemoryProblemStore, Problem, SubmissionResult, submit_code

__all__ = [
    "EngineSettings",
    "ErrorKind",
    "ExecutionOutcome",
    "ExecutionRequest",
    "InMemoryProblemStore",
    "InvalidProblemIdError",
    "Language",
    "LanguageProfile",
    "LocalEngine",
    "MissingFieldError",
    "PolyjudgeError",
    "Problem",
    "ProblemNotFoundError",
    "ResultSummary",
    "SubmissionResult",
    "TestCase",
    "TestResult",
    "Toolchain",
    "UnsupportedLanguageError",
    "evaluate",
    "execute_code",
    "get_profile",
    "submit_code",
    "summarize",
    "supported_languages",
]
