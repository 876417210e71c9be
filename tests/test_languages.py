from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from polyjudge import Language, Toolchain, UnsupportedLanguageError, get_profile, supported_languages
from polyjudge.languages import PROFILES, LanguageProfile, profile_for_path


def test_supported_languages_order() -> None:
    assert supported_languages() == ["javascript", "python", "c", "java"]


def test_every_profile_has_a_run_command() -> None:
    tools = Toolchain()
    for profile in PROFILES.values():
        source = Path("/scratch/run") / profile.source_name("", "temp-1")
        assert profile.run_command(source, tools)


@pytest.mark.parametrize(
    "language, compiled",
    [("javascript", False), ("python", False), ("c", True), ("java", True)],
)
def test_only_compiled_languages_have_build_commands(language: str, compiled: bool) -> None:
    profile = get_profile(language)
    source = Path("/scratch/run") / profile.source_name("", "temp-1")
    assert profile.compiled is compiled
    assert (profile.build_command(source, Toolchain()) is not None) is compiled


def test_interpreted_commands() -> None:
    tools = Toolchain(python="/usr/bin/python3.12", node="nodejs")
    assert get_profile("python").run_command(Path("/s/a.py"), tools) == ["/usr/bin/python3.12", "/s/a.py"]
    assert get_profile("javascript").run_command(Path("/s/a.js"), tools) == ["nodejs", "/s/a.js"]


def test_c_commands() -> None:
    profile = get_profile("c")
    source = Path("/s/temp-1.c")
    assert profile.build_command(source, Toolchain()) == ["gcc", "/s/temp-1.c", "-o", "/s/temp-1.c.out"]
    assert profile.run_command(source, Toolchain()) == ["/s/temp-1.c.out"]


def test_java_commands() -> None:
    profile = get_profile(Language.JAVA)
    source = Path("/s/run-1/Main.java")
    assert profile.build_command(source, Toolchain()) == ["javac", "/s/run-1/Main.java"]
    assert profile.run_command(source, Toolchain()) == ["java", "-cp", "/s/run-1", "Main"]


@pytest.mark.parametrize(
    "code, stem",
    [
        ("public class Solution {}", "Solution"),
        ("public final class Answer_2 {}", "Answer_2"),
        ("class Helper {}\npublic class Main {}", "Main"),
        ("class NotPublic {}", "Main"),
        ("// public class Foo\npublic class Main {}", "Main"),
        ("/* public class Old */\npublic class Solution {}", "Solution"),
        ('class Main { String s = "public class Bar"; }', "Main"),
        ('public class Quoted { String s = "say \\"public class X\\""; }', "Quoted"),
    ],
)
def test_java_stem_follows_public_class(code: str, stem: str) -> None:
    assert get_profile("java").source_name(code, "temp-1") == f"{stem}.java"


def test_non_java_stem_uses_default() -> None:
    assert get_profile("python").source_name("public class X {}", "temp-9") == "temp-9.py"


def test_unknown_language() -> None:
    with pytest.raises(UnsupportedLanguageError) as exc:
        get_profile("ruby")
    assert exc.value.language == "ruby"
    assert isinstance(exc.value, ValueError)


@pytest.mark.parametrize(
    "path, language",
    [("echo.py", "python"), ("Main.java", "java"), ("sum.C", "c"), ("app.js", "javascript")],
)
def test_profile_for_path(path: str, language: str) -> None:
    assert profile_for_path(path).language.value == language


def test_profile_for_unknown_extension() -> None:
    with pytest.raises(UnsupportedLanguageError):
        profile_for_path("main.rs")


def test_profile_without_run_command_cannot_be_built() -> None:
    @dataclass(frozen=True, slots=True)
    class Incomplete(LanguageProfile):
        pass

    with pytest.raises(TypeError):
        Incomplete(Language.PYTHON, "py")
