from .config import EngineSettings, Toolchain
from .engine import ExecutionEngine
from .types import ErrorKind, ExecutionOutcome, ExecutionRequest

__all__ = [
    "EngineSettings",
    "ErrorKind",
    "ExecutionEngine",
    "ExecutionOutcome",
    "ExecutionRequest",
    "Toolchain",
]
