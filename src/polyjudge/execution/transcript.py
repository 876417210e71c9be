from __future__ import annotations

import itertools
import secrets
import shutil
import time
from dataclasses import dataclass
from pathlib import Path

import structlog

from ..languages import LanguageProfile

logger = structlog.get_logger(__name__)

_COUNTER = itertools.count()


def transcript_name(prefix: str) -> tuple[str, int]:
    """Return a collision-resistant transcript name and its creation timestamp.

    The name joins a nanosecond timestamp, a process-wide counter and a random
    token, so concurrent executions never share a name.

    Example:
        ```python
        name, created_ns = transcript_name("temp-")  # "temp-1718000000000000000-0-1a2b3c4d"
        ```
    """
    created_ns = time.time_ns()
    return f"{prefix}{created_ns}-{next(_COUNTER)}-{secrets.token_hex(4)}", created_ns


@dataclass(frozen=True, slots=True)
class TranscriptFile:
    """Source file written for exactly one in-flight execution.

    `directory` is private to the execution; build byproducts land next to
    `path` and go away with it.

    Example:
        ```python
        transcript = create_transcript(Path("/tmp/polyjudge"), get_profile("python"), "print(1)", "temp-")
        ```
    """

    path: Path
    directory: Path
    language: str
    created_ns: int


def create_transcript(
    scratch_dir: Path,
    profile: LanguageProfile,
    code: str,
    prefix: str,
) -> TranscriptFile:
    """Write `code` verbatim into a fresh subdirectory of `scratch_dir`.

    Raises `OSError` when the directory or file cannot be written and
    `UnicodeEncodeError` when `code` holds text UTF-8 cannot encode (lone
    surrogates); whatever was created before the failure is removed again.

    Example:
        ```python
        transcript = create_transcript(Path("/tmp/polyjudge"), get_profile("c"), src, "temp-")
        ```
    """
    name, created_ns = transcript_name(prefix)
    directory = scratch_dir / name
    directory.mkdir(parents=True, exist_ok=False)
    path = directory / profile.source_name(code, name)
    try:
        # newline="" keeps the code byte-for-byte as submitted
        with path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(code)
    except (OSError, UnicodeError):
        shutil.rmtree(directory, ignore_errors=True)
        raise
    logger.debug("transcript_written", path=str(path), language=profile.language.value)
    return TranscriptFile(
        path=path,
        directory=directory,
        language=profile.language.value,
        created_ns=created_ns,
    )


def remove_transcript(transcript: TranscriptFile) -> bool:
    """Delete a transcript with its build byproducts.

    Failures are logged and reported through the return value, never raised.

    Example:
        ```python
        removed = remove_transcript(transcript)
        ```
    """
    try:
        shutil.rmtree(transcript.directory)
    except FileNotFoundError:
        return True
    except OSError as exc:
        logger.warning(
            "transcript_cleanup_failed",
            directory=str(transcript.directory),
            error=str(exc),
        )
        return False
    logger.debug("transcript_removed", directory=str(transcript.directory))
    return True
