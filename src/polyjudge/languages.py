from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import UnsupportedLanguageError
from .execution.config import Toolchain

_JAVA_PUBLIC_CLASS = re.compile(
    r"\bpublic\s+(?:(?:final|abstract|strictfp)\s+)*class\s+([A-Za-z_$][A-Za-z0-9_$]*)"
)
# comments, text blocks, string and char literals
_JAVA_NOISE = re.compile(
    r"//[^\n]*|/\*.*?\*/|\"\"\".*?\"\"\"|\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*'",
    re.DOTALL,
)


class Language(str, Enum):
    """Language tags accepted by the engine.

    Example:
        ```python
        lang = Language("python")
        ```
    """

    JAVASCRIPT = "javascript"
    PYTHON = "python"
    C = "c"
    JAVA = "java"


@dataclass(frozen=True, slots=True)
class LanguageProfile(ABC):
    """Recipe for turning one language's source file into a running process.

    Interpreted profiles only define `run_command`; compiled ones also return
    a `build_command`. Commands are argv lists and never go through a shell.

    Example:
        ```python
        profile = get_profile("python")
        argv = profile.run_command(Path("/tmp/x/temp-1.py"), Toolchain())
        ```
    """

    language: Language
    source_extension: str

    @property
    def compiled(self) -> bool:
        """Return True when the profile has a build step.

        Example:
            ```python
            assert get_profile("c").compiled
            ```
        """
        return False

    def source_stem(self, code: str, default: str) -> str:
        """Return the base name the source file must carry.

        Example:
            ```python
            stem = profile.source_stem("print(1)", "temp-123")
            ```
        """
        return default

    def source_name(self, code: str, default: str) -> str:
        """Return the full source file name, extension included.

        Example:
            ```python
            name = profile.source_name("print(1)", "temp-123")  # "temp-123.py"
            ```
        """
        return f"{self.source_stem(code, default)}.{self.source_extension}"

    def build_command(self, source: Path, tools: Toolchain) -> list[str] | None:
        """Return the build argv, or None for interpreted languages.

        Example:
            ```python
            assert get_profile("python").build_command(Path("a.py"), Toolchain()) is None
            ```
        """
        return None

    @abstractmethod
    def run_command(self, source: Path, tools: Toolchain) -> list[str]:
        """Return the argv that runs the (built) program.

        Example:
            ```python
            argv = profile.run_command(Path("/tmp/x/a.py"), Toolchain())
            ```
        """


@dataclass(frozen=True, slots=True)
class JavaScriptProfile(LanguageProfile):
    """Run JavaScript sources with Node.js.

    Example:
        ```python
        JavaScriptProfile(Language.JAVASCRIPT, "js").run_command(Path("a.js"), Toolchain())
        ```
    """

    def run_command(self, source: Path, tools: Toolchain) -> list[str]:
        """Return `node <source>`.

        Example:
            ```python
            ["node", "/tmp/x/a.js"] == profile.run_command(Path("/tmp/x/a.js"), Toolchain())
            ```
        """
        return [tools.node, str(source)]


@dataclass(frozen=True, slots=True)
class PythonProfile(LanguageProfile):
    """Run Python sources with the configured interpreter.

    Example:
        ```python
        PythonProfile(Language.PYTHON, "py").run_command(Path("a.py"), Toolchain())
        ```
    """

    def run_command(self, source: Path, tools: Toolchain) -> list[str]:
        """Return `python3 <source>`.

        Example:
            ```python
            ["python3", "/tmp/x/a.py"] == profile.run_command(Path("/tmp/x/a.py"), Toolchain())
            ```
        """
        return [tools.python, str(source)]


@dataclass(frozen=True, slots=True)
class CProfile(LanguageProfile):
    """Compile C sources with gcc and run the produced binary.

    Example:
        ```python
        CProfile(Language.C, "c").build_command(Path("/tmp/x/a.c"), Toolchain())
        ```
    """

    @property
    def compiled(self) -> bool:
        """C always needs a build step.

        Example:
            ```python
            assert CProfile(Language.C, "c").compiled
            ```
        """
        return True

    def binary_path(self, source: Path) -> Path:
        """Return where the compiled binary for `source` is written.

        Example:
            ```python
            CProfile(Language.C, "c").binary_path(Path("/tmp/x/a.c"))  # /tmp/x/a.c.out
            ```
        """
        return source.with_name(f"{source.name}.out")

    def build_command(self, source: Path, tools: Toolchain) -> list[str] | None:
        """Return `gcc <source> -o <source>.out`.

        Example:
            ```python
            argv = profile.build_command(Path("/tmp/x/a.c"), Toolchain())
            ```
        """
        return [tools.gcc, str(source), "-o", str(self.binary_path(source))]

    def run_command(self, source: Path, tools: Toolchain) -> list[str]:
        """Return the compiled binary path as the argv.

        Example:
            ```python
            ["/tmp/x/a.c.out"] == profile.run_command(Path("/tmp/x/a.c"), Toolchain())
            ```
        """
        return [str(self.binary_path(source))]


@dataclass(frozen=True, slots=True)
class JavaProfile(LanguageProfile):
    """Compile Java sources with javac and run the class with java.

    javac insists that a public class lives in a file of the same name, so
    the source stem comes from the code's public class (`Main` by default).

    Example:
        ```python
        JavaProfile(Language.JAVA, "java").source_name("public class Solution {}", "temp-1")
        ```
    """

    @property
    def compiled(self) -> bool:
        """Java always needs a build step.

        Example:
            ```python
            assert JavaProfile(Language.JAVA, "java").compiled
            ```
        """
        return True

    def source_stem(self, code: str, default: str) -> str:
        """Return the public class name declared in `code`, or `Main`.

        Example:
            ```python
            profile.source_stem("public class Solution { }", "temp-1")  # "Solution"
            ```
        """
        match = _JAVA_PUBLIC_CLASS.search(_JAVA_NOISE.sub(" ", code))
        return match.group(1) if match else "Main"

    def build_command(self, source: Path, tools: Toolchain) -> list[str] | None:
        """Return `javac <source>`.

        Example:
            ```python
            argv = profile.build_command(Path("/tmp/x/Main.java"), Toolchain())
            ```
        """
        return [tools.javac, str(source)]

    def run_command(self, source: Path, tools: Toolchain) -> list[str]:
        """Return `java -cp <dir> <ClassName>`.

        Example:
            ```python
            ["java", "-cp", "/tmp/x", "Main"] == profile.run_command(Path("/tmp/x/Main.java"), Toolchain())
            ```
        """
        return [tools.java, "-cp", str(source.parent), source.stem]


PROFILES: dict[Language, LanguageProfile] = {
    Language.JAVASCRIPT: JavaScriptProfile(Language.JAVASCRIPT, "js"),
    Language.PYTHON: PythonProfile(Language.PYTHON, "py"),
    Language.C: CProfile(Language.C, "c"),
    Language.JAVA: JavaProfile(Language.JAVA, "java"),
}


def supported_languages() -> list[str]:
    """Return the supported language tags in declaration order.

    Example:
        ```python
        supported_languages()  # ["javascript", "python", "c", "java"]
        ```
    """
    return [language.value for language in PROFILES]


def get_profile(language: str | Language) -> LanguageProfile:
    """Return the profile for a language tag.

    Raises `UnsupportedLanguageError` for unknown tags.

    Example:
        ```python
        profile = get_profile("java")
        ```
    """
    try:
        key = Language(language)
    except ValueError:
        raise UnsupportedLanguageError(str(language)) from None
    return PROFILES[key]


def profile_for_path(path: str | Path) -> LanguageProfile:
    """Infer a profile from a source file extension.

    Example:
        ```python
        profile = profile_for_path("solution.c")
        ```
    """
    suffix = Path(path).suffix.lstrip(".").lower()
    for profile in PROFILES.values():
        if profile.source_extension == suffix:
            return profile
    raise UnsupportedLanguageError(suffix or str(path))
