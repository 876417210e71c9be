from __future__ import annotations

import argparse
import json
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich_argparse import RawTextRichHelpFormatter
from polyjudge import (
    EngineSettings,
    LocalEngine,
    PolyjudgeError,
    TestCase,
    evaluate,
    execute_code,
    summarize,
)
from polyjudge.languages import PROFILES, get_profile, profile_for_path
from polyjudge.execution.config import Toolchain
from polyjudge.logging_setup import configure_logging

_CONSOLE = Console(no_color=False)


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="python -m pj")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {escape(message)}", border_style="red"))
        self.print_help()
        raise SystemExit(2)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for running and judging programs.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="python -m pj",
        description=(
            "polyjudge CLI\n"
            "Run JavaScript, Python, C and Java programs and judge them against test cases.\n"
            "Programs run as ordinary host processes bounded only by a wall-clock timeout."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m pj languages\n"
            "  python -m pj run echo.py --input hello\n"
            "  python -m pj run Main.java --input-file in.txt --timeout-ms 2000\n"
            "  python -m pj evaluate sum.c --cases cases.json\n\n"
            "Cases File:\n"
            '  [{"input": "2 3", "expectedOutput": "5"}, {"input": "1 1", "expectedOutput": "2"}]'
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--config",
        help=(
            "Engine TOML file with [engine] and [toolchain] tables.\n"
            "Example: --config /etc/polyjudge/engine.toml"
        ),
    )
    parser.add_argument(
        "--scratch-dir",
        help="Directory for transient source files (overrides the config file).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for engine diagnostics on stderr (default: WARNING).",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit logs as JSON lines.",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    sub.add_parser(
        "languages",
        help="List supported languages and their commands.",
        description="Show every language profile with its extension, build and run commands.",
        formatter_class=_HELP_FORMATTER,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Execute one source file once.",
        description=(
            "Write, build (when needed), run and clean up one program.\n"
            "The language is inferred from the file extension unless --language is given."
        ),
        epilog=(
            "Examples:\n"
            "  python -m pj run echo.py --input hello\n"
            "  python -m pj run prog.txt --language c"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument("source")
    run_cmd.add_argument("--language", help="Language tag (javascript, python, c, java).")
    input_group = run_cmd.add_mutually_exclusive_group()
    input_group.add_argument("--input", default="", help="Text fed to the program on stdin.")
    input_group.add_argument("--input-file", help="File whose contents are fed on stdin.")
    run_cmd.add_argument(
        "--timeout-ms",
        type=int,
        help="Wall-clock limit for the run step (default: engine setting, 5000).",
    )

    eval_cmd = sub.add_parser(
        "evaluate",
        help="Judge one source file against a JSON list of test cases.",
        description=(
            "Run the program once per test case and compare trimmed outputs.\n"
            "Exit status is 0 only when every case passes."
        ),
        epilog=(
            "Example:\n"
            "  python -m pj evaluate sum.py --cases cases.json --timeout-ms 1000"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    eval_cmd.add_argument("source")
    eval_cmd.add_argument("--language", help="Language tag (javascript, python, c, java).")
    eval_cmd.add_argument("--cases", required=True, help="JSON file with test cases.")
    eval_cmd.add_argument(
        "--timeout-ms",
        type=int,
        help="Wall-clock limit per test case (default: engine setting, 5000).",
    )

    return parser


def build_settings(args: argparse.Namespace) -> EngineSettings:
    """Resolve engine settings from global CLI flags.

    Example:
        ```python
        settings = build_settings(args)
        ```
    """
    settings = EngineSettings.from_file(args.config) if args.config else EngineSettings()
    return settings.with_overrides(
        scratch_dir=Path(args.scratch_dir).expanduser() if args.scratch_dir else None,
    )


def build_engine(args: argparse.Namespace) -> LocalEngine:
    """Create a LocalEngine from global CLI flags.

    Example:
        ```python
        engine = build_engine(args)
        ```
    """
    return LocalEngine(build_settings(args))


def _resolve_language(args: argparse.Namespace) -> str:
    """Return the explicit language or the one implied by the source extension.

    Example:
        ```python
        language = _resolve_language(args)
        ```
    """
    if args.language:
        return get_profile(args.language).language.value
    return profile_for_path(args.source).language.value


def _load_cases(path: str) -> list[TestCase]:
    """Read test cases from a JSON list of objects.

    Example:
        ```python
        cases = _load_cases("cases.json")
        ```
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError("Cases file must contain a JSON list")
    return [TestCase.from_dict(item) for item in raw]


def _print_languages() -> None:
    """Render language profiles in a rich table.

    Example:
        ```python
        _print_languages()
        ```
    """
    tools = Toolchain()
    table = Table(title="Supported Languages")
    table.add_column("Language", style="cyan")
    table.add_column("Extension", style="magenta")
    table.add_column("Build")
    table.add_column("Run")
    for profile in PROFILES.values():
        source = Path(profile.source_name("", "prog"))
        build = profile.build_command(source, tools)
        table.add_row(
            profile.language.value,
            f".{profile.source_extension}",
            " ".join(build) if build else "-",
            " ".join(profile.run_command(source, tools)),
        )
    _CONSOLE.print(table)


def _print_results(rows: list[dict[str, Any]]) -> None:
    """Render test results in a rich table.

    Example:
        ```python
        _print_results([{"input": "1", "expectedOutput": "1", "actualOutput": "1", "passed": True}])
        ```
    """
    table = Table(title="Test Results")
    table.add_column("#", style="cyan")
    table.add_column("Input")
    table.add_column("Expected")
    table.add_column("Actual")
    table.add_column("Verdict")
    for index, row in enumerate(rows, start=1):
        table.add_row(
            str(index),
            escape(row["input"]),
            escape(row["expectedOutput"]),
            escape(row["actualOutput"]),
            "[bold green]PASS[/bold green]" if row["passed"] else "[bold red]FAIL[/bold red]",
        )
    _CONSOLE.print(table)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `pj` CLI command handler.

    Example:
        ```python
        code = main(["run", "echo.py", "--input", "hello"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level, json_output=args.log_json)

    if args.command == "languages":
        _print_languages()
        return 0

    try:
        language = _resolve_language(args)
        code = Path(args.source).read_text(encoding="utf-8")
        engine = build_engine(args)
        if args.command == "run":
            input_text = (
                Path(args.input_file).read_text(encoding="utf-8") if args.input_file else args.input
            )
            outcome = execute_code(
                code,
                language,
                engine=engine,
                input_text=input_text,
                timeout_ms=args.timeout_ms,
            )
            if outcome.ok:
                _CONSOLE.print(
                    Panel(escape(outcome.output.rstrip("\n")), title="Output", border_style="green")
                )
                return 0
            kind = outcome.kind.value if outcome.kind else "error"
            _CONSOLE.print(
                Panel(escape(outcome.message), title=f"Failed: {kind}", border_style="red")
            )
            return 1
        if args.command == "evaluate":
            cases = _load_cases(args.cases)
            results = evaluate(language, code, cases, engine=engine, timeout_ms=args.timeout_ms)
            _print_results([result.to_dict() for result in results])
            summary = summarize(results)
            style = "bold green" if summary.all_passed else "bold red"
            _CONSOLE.print(
                Panel.fit(f"Passed {summary.passed}/{summary.total} test case(s)", style=style)
            )
            return 0 if summary.all_passed else 1
    except (PolyjudgeError, ValueError, OSError) as exc:
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {escape(str(exc))}", border_style="red"))
        return 2

    parser.error("Unhandled command")
