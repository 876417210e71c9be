from __future__ import annotations

import tempfile
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any


def _default_config_path() -> Path:
    """Return bundled default engine TOML path.

    Example:
        ```python
        path = _default_config_path()
        ```
    """
    return Path(__file__).with_name("default_engine.toml")


def _read_engine_toml(path: Path) -> dict[str, Any]:
    """Read engine TOML and return a normalized settings dictionary.

    Example:
        ```python
        raw = _read_engine_toml(Path("/tmp/engine.toml"))
        ```
    """
    if not path.exists():
        return {
            "timeout_ms": 5000,
            "build_timeout_ms": 30000,
            "file_prefix": "temp-",
            "toolchain": {},
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    engine_obj = raw.get("engine", raw)
    if not isinstance(engine_obj, dict):
        raise ValueError("Engine config must be a TOML table")
    toolchain_obj = raw.get("toolchain", engine_obj.get("toolchain", {}))
    if not isinstance(toolchain_obj, dict):
        raise ValueError("'toolchain' must be a TOML table")
    return {**engine_obj, "toolchain": toolchain_obj}


def _positive_int(value: Any, field_name: str) -> int:
    """Validate a strictly positive integer setting.

    Example:
        ```python
        timeout = _positive_int(5000, "timeout_ms")
        ```
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{field_name}' must be an integer")
    if value <= 0:
        raise ValueError(f"'{field_name}' must be greater than zero")
    return value


_DEFAULT_ENGINE_RAW = _read_engine_toml(_default_config_path())
DEFAULT_TIMEOUT_MS = int(_DEFAULT_ENGINE_RAW.get("timeout_ms", 5000))
DEFAULT_BUILD_TIMEOUT_MS = int(_DEFAULT_ENGINE_RAW.get("build_timeout_ms", 30000))
DEFAULT_FILE_PREFIX = str(_DEFAULT_ENGINE_RAW.get("file_prefix", "temp-"))
DEFAULT_SCRATCH_DIR = Path(tempfile.gettempdir()) / "polyjudge"


@dataclass(frozen=True, slots=True)
class Toolchain:
    """Executable names used to build and run each supported language.

    Example:
        ```python
        tools = Toolchain(python="python3.12", gcc="clang")
        ```
    """

    python: str = "python3"
    node: str = "node"
    gcc: str = "gcc"
    javac: str = "javac"
    java: str = "java"

    def __post_init__(self) -> None:
        """Reject blank executable names.

        Example:
            ```python
            Toolchain(node="node18")
            ```
        """
        for name in ("python", "node", "gcc", "javac", "java"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"toolchain '{name}' must be a non-empty string")

    @classmethod
    def from_mapping(cls, raw: dict[str, Any], base: "Toolchain | None" = None) -> "Toolchain":
        """Build a toolchain from a TOML table, keeping `base` values for absent keys.

        Example:
            ```python
            tools = Toolchain.from_mapping({"python": "/usr/bin/python3"})
            ```
        """
        known = {"python", "node", "gcc", "javac", "java"}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"Unknown toolchain entries: {', '.join(unknown)}")
        overrides = {key: str(value) for key, value in raw.items()}
        if base is None:
            return cls(**overrides)
        return replace(base, **overrides)


_DEFAULT_TOOLCHAIN = Toolchain.from_mapping(_DEFAULT_ENGINE_RAW.get("toolchain", {}))


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Configuration for a local execution engine.

    The scratch directory is owned by the engine built from these settings;
    every execution gets its own subdirectory inside it.

    Example:
        ```python
        settings = EngineSettings(scratch_dir=Path("/tmp/judge"), timeout_ms=2000)
        ```
    """

    scratch_dir: Path = DEFAULT_SCRATCH_DIR
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    build_timeout_ms: int = DEFAULT_BUILD_TIMEOUT_MS
    file_prefix: str = DEFAULT_FILE_PREFIX
    toolchain: Toolchain = field(default_factory=lambda: _DEFAULT_TOOLCHAIN)

    def __post_init__(self) -> None:
        """Validate timeouts and the transcript prefix.

        Example:
            ```python
            EngineSettings(timeout_ms=1000)
            ```
        """
        _positive_int(self.timeout_ms, "timeout_ms")
        _positive_int(self.build_timeout_ms, "build_timeout_ms")
        if not self.file_prefix:
            raise ValueError("'file_prefix' must be a non-empty string")
        if "/" in self.file_prefix or "\\" in self.file_prefix:
            raise ValueError("'file_prefix' must not contain path separators")
        if not isinstance(self.scratch_dir, Path):
            object.__setattr__(self, "scratch_dir", Path(self.scratch_dir))

    @classmethod
    def from_file(cls, config_path: str | Path) -> "EngineSettings":
        """Create settings from a TOML file.

        Example:
            ```python
            settings = EngineSettings.from_file("/etc/polyjudge/engine.toml")
            ```
        """
        path = Path(config_path)
        if not path.exists():
            raise ValueError(f"Engine config file not found: {path}")
        raw = _read_engine_toml(path)
        scratch = raw.get("scratch_dir")
        return cls(
            scratch_dir=Path(str(scratch)).expanduser() if scratch else DEFAULT_SCRATCH_DIR,
            timeout_ms=raw.get("timeout_ms", DEFAULT_TIMEOUT_MS),
            build_timeout_ms=raw.get("build_timeout_ms", DEFAULT_BUILD_TIMEOUT_MS),
            file_prefix=str(raw.get("file_prefix", DEFAULT_FILE_PREFIX)),
            toolchain=Toolchain.from_mapping(raw["toolchain"], base=_DEFAULT_TOOLCHAIN),
        )

    def with_overrides(self, **changes: Any) -> "EngineSettings":
        """Return a copy with the given fields replaced, skipping `None` values.

        Example:
            ```python
            quick = settings.with_overrides(timeout_ms=1000, scratch_dir=None)
            ```
        """
        return replace(self, **{key: value for key, value in changes.items() if value is not None})
