from __future__ import annotations

import os
import subprocess
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from polyjudge import (
    EngineSettings,
    ErrorKind,
    ExecutionRequest,
    LocalEngine,
    Toolchain,
    UnsupportedLanguageError,
)
from polyjudge.execution import transcript as transcript_module


def _run(engine: LocalEngine, code: str, input_text: str = "", timeout_ms: int | None = None):
    return engine.execute(
        ExecutionRequest(code=code, language="python", input=input_text, timeout_ms=timeout_ms)
    )


def test_scratch_dir_created_on_init(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "scratch"
    LocalEngine(EngineSettings(scratch_dir=target))
    assert target.is_dir()


def test_echo_input(engine: LocalEngine) -> None:
    outcome = _run(engine, "print(input())", "hello")
    assert outcome.ok is True
    assert outcome.output.strip() == "hello"
    assert outcome.kind is None


def test_input_with_quotes_is_passed_verbatim(engine: LocalEngine) -> None:
    outcome = _run(engine, "print(input())", 'say "hi" and \'bye\'')
    assert outcome.ok
    assert outcome.output.strip() == 'say "hi" and \'bye\''


def test_multiline_input(engine: LocalEngine) -> None:
    code = "a = int(input())\nb = int(input())\nprint(a + b)"
    outcome = _run(engine, code, "2\n40\n")
    assert outcome.ok
    assert outcome.output.strip() == "42"


def test_empty_input_closes_stdin(engine: LocalEngine) -> None:
    outcome = _run(engine, "print(input())", timeout_ms=3000)
    assert outcome.ok is False
    assert outcome.kind is ErrorKind.RUNTIME_ERROR
    assert "EOFError" in outcome.message


def test_runtime_exception_is_classified(engine: LocalEngine) -> None:
    outcome = _run(engine, "x = 1 / 0")
    assert outcome.ok is False
    assert outcome.kind is ErrorKind.RUNTIME_ERROR
    assert "ZeroDivisionError" in outcome.message
    assert outcome.returncode == 1


def test_nonzero_exit_without_stderr(engine: LocalEngine) -> None:
    outcome = _run(engine, "import sys\nprint('partial')\nsys.exit(3)")
    assert outcome.kind is ErrorKind.RUNTIME_ERROR
    assert outcome.message == "Process exited with code 3"
    assert outcome.returncode == 3


def test_stderr_output_is_a_runtime_error(engine: LocalEngine) -> None:
    outcome = _run(engine, "import sys\nsys.stderr.write('careful\\n')\nprint('ok')")
    assert outcome.ok is False
    assert outcome.kind is ErrorKind.RUNTIME_ERROR
    assert outcome.message == "careful"


def test_empty_program_succeeds_with_empty_output(engine: LocalEngine) -> None:
    outcome = _run(engine, "")
    assert outcome.ok
    assert outcome.output == ""


def test_timeout_is_classified(engine: LocalEngine) -> None:
    started = time.monotonic()
    outcome = _run(engine, "while True:\n    pass", timeout_ms=500)
    elapsed = time.monotonic() - started
    assert outcome.ok is False
    assert outcome.kind is ErrorKind.TIMEOUT_ERROR
    assert outcome.timed_out
    assert outcome.message == "Execution timed out after 500ms"
    assert elapsed < 5


@pytest.mark.skipif(os.name != "posix", reason="process probing uses POSIX signals")
def test_timed_out_process_is_not_left_running(engine: LocalEngine, tmp_path: Path) -> None:
    pid_file = tmp_path / "child.pid"
    code = (
        "import os, time\n"
        f"with open({str(pid_file)!r}, 'w') as f:\n"
        "    f.write(str(os.getpid()))\n"
        "while True:\n"
        "    time.sleep(0.05)\n"
    )
    outcome = _run(engine, code, timeout_ms=2000)
    assert outcome.kind is ErrorKind.TIMEOUT_ERROR
    pid = int(pid_file.read_text())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


def test_default_timeout_comes_from_settings(scratch_dir: Path) -> None:
    engine = LocalEngine(
        EngineSettings(
            scratch_dir=scratch_dir,
            timeout_ms=400,
            toolchain=Toolchain(python=sys.executable),
        )
    )
    outcome = _run(engine, "import time\ntime.sleep(5)")
    assert outcome.kind is ErrorKind.TIMEOUT_ERROR
    assert "400ms" in outcome.message


@pytest.mark.parametrize(
    "code, timeout_ms",
    [
        ("print('fine')", None),
        ("raise ValueError('bad')", None),
        ("while True:\n    pass", 300),
    ],
)
def test_scratch_dir_is_empty_after_execute(
    engine: LocalEngine, scratch_dir: Path, code: str, timeout_ms: int | None
) -> None:
    _run(engine, code, timeout_ms=timeout_ms)
    assert list(scratch_dir.iterdir()) == []


def test_program_runs_inside_its_own_directory(engine: LocalEngine, scratch_dir: Path) -> None:
    outcome = _run(engine, "import os\nprint(os.getcwd())\nprint(sorted(os.listdir('.')))")
    assert outcome.ok
    cwd, listing = outcome.output.strip().splitlines()
    assert Path(cwd).parent == scratch_dir.resolve()
    assert Path(cwd).name.startswith("temp-")
    assert listing.endswith(".py']")


def test_repeated_runs_are_equivalent(engine: LocalEngine) -> None:
    first = _run(engine, "print(sum(range(10)))")
    second = _run(engine, "print(sum(range(10)))")
    assert first.ok and second.ok
    assert first.output == second.output == "45\n"


def test_concurrent_executions_do_not_collide(engine: LocalEngine, scratch_dir: Path) -> None:
    inputs = [f"value-{index}" for index in range(8)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lambda text: _run(engine, "print(input())", text), inputs))
    assert [outcome.output.strip() for outcome in outcomes] == inputs
    assert list(scratch_dir.iterdir()) == []


def test_unsupported_language_raises(engine: LocalEngine) -> None:
    with pytest.raises(UnsupportedLanguageError, match="ruby"):
        engine.execute(ExecutionRequest(code="puts 1", language="ruby"))


def test_non_positive_timeout_raises(engine: LocalEngine) -> None:
    with pytest.raises(ValueError, match="timeout_ms"):
        _run(engine, "print(1)", timeout_ms=0)


def test_write_failure_is_io_error(engine: LocalEngine, scratch_dir: Path) -> None:
    scratch_dir.rmdir()
    scratch_dir.write_text("not a directory", encoding="utf-8")
    outcome = _run(engine, "print(1)")
    assert outcome.ok is False
    assert outcome.kind is ErrorKind.IO_ERROR
    assert outcome.message.startswith("Error writing file:")


def test_cleanup_failure_is_logged_not_raised(
    engine: LocalEngine, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _fail(path: object) -> None:
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(transcript_module.shutil, "rmtree", _fail)
    with capture_logs() as logs:
        outcome = _run(engine, "print('still fine')")
    assert outcome.ok
    assert outcome.output.strip() == "still fine"
    events = [entry for entry in logs if entry["event"] == "transcript_cleanup_failed"]
    assert len(events) == 1
    assert events[0]["log_level"] == "warning"
    assert "read-only filesystem" in events[0]["error"]


def test_missing_interpreter_is_runtime_error(scratch_dir: Path) -> None:
    engine = LocalEngine(
        EngineSettings(
            scratch_dir=scratch_dir,
            toolchain=Toolchain(node="polyjudge-missing-node-binary"),
        )
    )
    outcome = engine.execute(ExecutionRequest(code="console.log(1)", language="javascript"))
    assert outcome.kind is ErrorKind.RUNTIME_ERROR
    assert "polyjudge-missing-node-binary" in outcome.message
    assert list(scratch_dir.iterdir()) == []


def test_missing_compiler_is_compile_error(scratch_dir: Path) -> None:
    engine = LocalEngine(
        EngineSettings(
            scratch_dir=scratch_dir,
            toolchain=Toolchain(gcc="polyjudge-missing-gcc-binary"),
        )
    )
    outcome = engine.execute(ExecutionRequest(code="int main(void) { return 0; }", language="c"))
    assert outcome.kind is ErrorKind.COMPILE_ERROR
    assert "polyjudge-missing-gcc-binary" in outcome.message
    assert list(scratch_dir.iterdir()) == []


def test_build_diagnostics_are_compile_errors(scratch_dir: Path) -> None:
    # python stands in for a compiler that rejects the source
    engine = LocalEngine(
        EngineSettings(
            scratch_dir=scratch_dir,
            toolchain=Toolchain(gcc=sys.executable),
        )
    )
    outcome = engine.execute(ExecutionRequest(code="int main(void) { return 0; }", language="c"))
    assert outcome.kind is ErrorKind.COMPILE_ERROR
    assert "SyntaxError" in outcome.message
    assert list(scratch_dir.iterdir()) == []


def test_stdout_falls_back_to_blank_stderr(engine: LocalEngine) -> None:
    outcome = _run(engine, "import sys\nsys.stderr.write('   \\n')")
    assert outcome.ok
    assert outcome.kind is None
    assert outcome.output == "   \n"


def test_unencodable_code_is_io_error(engine: LocalEngine, scratch_dir: Path) -> None:
    outcome = _run(engine, "print('\ud800')")
    assert outcome.ok is False
    assert outcome.kind is ErrorKind.IO_ERROR
    assert outcome.message.startswith("Error writing file:")
    assert list(scratch_dir.iterdir()) == []


@pytest.mark.skipif(os.name != "posix", reason="process probing uses POSIX signals")
def test_interrupted_run_kills_the_process(
    engine: LocalEngine, scratch_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    pid_file = tmp_path / "child.pid"
    code = (
        "import os, time\n"
        f"with open({str(pid_file)!r}, 'w') as f:\n"
        "    f.write(str(os.getpid()))\n"
        "while True:\n"
        "    time.sleep(0.05)\n"
    )

    def _interrupt(self: subprocess.Popen[str], input: str | None = None, timeout: float | None = None):
        deadline = time.monotonic() + 10
        while not pid_file.exists() or not pid_file.read_text():
            if time.monotonic() > deadline:
                break
            time.sleep(0.02)
        raise KeyboardInterrupt

    monkeypatch.setattr(subprocess.Popen, "communicate", _interrupt)
    with pytest.raises(KeyboardInterrupt):
        _run(engine, code, timeout_ms=5000)
    pid = int(pid_file.read_text())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
    assert list(scratch_dir.iterdir()) == []
