from __future__ import annotations

import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

import structlog

from ..languages import LanguageProfile, get_profile
from .config import EngineSettings
from .transcript import TranscriptFile, create_transcript, remove_transcript
from .types import ErrorKind, ExecutionOutcome, ExecutionRequest

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Captured result of one child process.

    Example:
        ```python
        result = ProcessResult(stdout="1\\n", stderr="", returncode=0, timed_out=False, duration_ms=12)
        ```
    """

    stdout: str
    stderr: str
    returncode: int | None
    timed_out: bool
    duration_ms: int


def _kill_process_tree(proc: subprocess.Popen[str]) -> None:
    """Force-kill a child and everything in its session.

    Example:
        ```python
        _kill_process_tree(proc)
        ```
    """
    try:
        if os.name == "posix":
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        # already gone
        pass


def run_process(
    argv: list[str],
    *,
    cwd: Path,
    input_text: str,
    timeout_ms: int,
) -> ProcessResult:
    """Run `argv` to completion or until `timeout_ms`, whichever comes first.

    Input is fed on stdin only when non-empty; otherwise stdin is closed so a
    program waiting for input sees EOF instead of hanging. On timeout the
    whole process group gets SIGKILL, as it does when anything else
    interrupts the wait. Raises `OSError` when the executable cannot be
    started.

    Example:
        ```python
        result = run_process(["python3", "a.py"], cwd=Path("/tmp/x"), input_text="5", timeout_ms=2000)
        ```
    """
    started = time.monotonic()
    proc = subprocess.Popen(
        argv,
        cwd=str(cwd),
        stdin=subprocess.PIPE if input_text else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        start_new_session=os.name == "posix",
    )
    try:
        stdout, stderr = proc.communicate(input=input_text or None, timeout=timeout_ms / 1000)
    except subprocess.TimeoutExpired:
        _kill_process_tree(proc)
        stdout, stderr = proc.communicate()
        return ProcessResult(
            stdout=stdout or "",
            stderr=stderr or "",
            returncode=proc.returncode,
            timed_out=True,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except BaseException:
        _kill_process_tree(proc)
        proc.wait()
        raise
    return ProcessResult(
        stdout=stdout or "",
        stderr=stderr or "",
        returncode=proc.returncode,
        timed_out=False,
        duration_ms=int((time.monotonic() - started) * 1000),
    )


class LocalEngine:
    """Execute submitted programs as host processes under a scratch directory.

    There is no sandbox: programs run with the engine's own privileges and
    only the wall-clock timeout bounds them.

    Example:
        ```python
        engine = LocalEngine(EngineSettings(scratch_dir=Path("/tmp/judge")))
        outcome = engine.execute(ExecutionRequest(code="print(input())", language="python", input="hi"))
        ```
    """

    def __init__(self, settings: EngineSettings | None = None) -> None:
        """Store settings and create the scratch directory if it is absent.

        Example:
            ```python
            engine = LocalEngine()
            ```
        """
        self._settings = settings or EngineSettings()
        self._settings.scratch_dir.mkdir(parents=True, exist_ok=True)

    @property
    def settings(self) -> EngineSettings:
        """Return the settings this engine was built with.

        Example:
            ```python
            engine.settings.timeout_ms
            ```
        """
        return self._settings

    def execute(self, request: ExecutionRequest) -> ExecutionOutcome:
        """Write, build, run and clean up one program.

        Raises `UnsupportedLanguageError` for unknown languages and
        `ValueError` for a non-positive timeout; every other failure comes
        back as a classified outcome.

        Example:
            ```python
            outcome = engine.execute(ExecutionRequest(code=src, language="c", input="3 4"))
            ```
        """
        profile = get_profile(request.language)
        timeout_ms = self._settings.timeout_ms if request.timeout_ms is None else request.timeout_ms
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be greater than zero")

        try:
            transcript = create_transcript(
                self._settings.scratch_dir,
                profile,
                request.code,
                self._settings.file_prefix,
            )
        except (OSError, UnicodeError) as exc:
            logger.error("transcript_write_failed", language=profile.language.value, error=str(exc))
            return ExecutionOutcome.failure(ErrorKind.IO_ERROR, f"Error writing file: {exc}")

        try:
            outcome = self._build_and_run(profile, transcript, request.input, timeout_ms)
        finally:
            remove_transcript(transcript)
        logger.info(
            "execution_finished",
            language=profile.language.value,
            ok=outcome.ok,
            kind=outcome.kind.value if outcome.kind else None,
            duration_ms=outcome.duration_ms,
        )
        return outcome

    def _build_and_run(
        self,
        profile: LanguageProfile,
        transcript: TranscriptFile,
        input_text: str,
        timeout_ms: int,
    ) -> ExecutionOutcome:
        """Run the optional build step, then the program itself.

        Example:
            ```python
            outcome = engine._build_and_run(profile, transcript, "", 5000)
            ```
        """
        tools = self._settings.toolchain
        build_argv = profile.build_command(transcript.path, tools)
        if build_argv is not None:
            failure = self._build(build_argv, transcript)
            if failure is not None:
                return failure

        run_argv = profile.run_command(transcript.path, tools)
        logger.debug("run_started", argv=run_argv, timeout_ms=timeout_ms)
        try:
            result = run_process(
                run_argv,
                cwd=transcript.directory,
                input_text=input_text,
                timeout_ms=timeout_ms,
            )
        except OSError as exc:
            return ExecutionOutcome.failure(
                ErrorKind.RUNTIME_ERROR,
                f"Could not start {run_argv[0]}: {exc}",
            )

        if result.timed_out:
            return ExecutionOutcome.failure(
                ErrorKind.TIMEOUT_ERROR,
                f"Execution timed out after {timeout_ms}ms",
                returncode=result.returncode,
                duration_ms=result.duration_ms,
            )
        if result.returncode != 0 or result.stderr.strip():
            return ExecutionOutcome.failure(
                ErrorKind.RUNTIME_ERROR,
                result.stderr.rstrip() or f"Process exited with code {result.returncode}",
                returncode=result.returncode,
                duration_ms=result.duration_ms,
            )
        return ExecutionOutcome.success(
            result.stdout or result.stderr,
            returncode=0,
            duration_ms=result.duration_ms,
        )

    def _build(self, argv: list[str], transcript: TranscriptFile) -> ExecutionOutcome | None:
        """Compile the transcript; return a failure outcome or None on success.

        Example:
            ```python
            failure = engine._build(["gcc", "a.c", "-o", "a.c.out"], transcript)
            ```
        """
        build_timeout_ms = self._settings.build_timeout_ms
        logger.debug("build_started", argv=argv)
        try:
            result = run_process(
                argv,
                cwd=transcript.directory,
                input_text="",
                timeout_ms=build_timeout_ms,
            )
        except OSError as exc:
            return ExecutionOutcome.failure(
                ErrorKind.COMPILE_ERROR,
                f"Could not start {argv[0]}: {exc}",
            )
        if result.timed_out:
            return ExecutionOutcome.failure(
                ErrorKind.COMPILE_ERROR,
                f"Compilation timed out after {build_timeout_ms}ms",
                duration_ms=result.duration_ms,
            )
        if result.returncode != 0 or result.stderr.strip():
            return ExecutionOutcome.failure(
                ErrorKind.COMPILE_ERROR,
                result.stderr.rstrip() or f"Compilation failed with exit code {result.returncode}",
                returncode=result.returncode,
                duration_ms=result.duration_ms,
            )
        return None
