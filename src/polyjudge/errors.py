from __future__ import annotations


class PolyjudgeError(Exception):
    """Base class for caller-facing polyjudge errors.

    Example:
        ```python
        raise PolyjudgeError("something went wrong")
        ```
    """


class UnsupportedLanguageError(PolyjudgeError, ValueError):
    """Raised when a language tag has no registered profile.

    Example:
        ```python
        raise UnsupportedLanguageError("cobol")
        ```
    """

    def __init__(self, language: str) -> None:
        """Store the rejected language tag.

        Example:
            ```python
            err = UnsupportedLanguageError("ruby")
            ```
        """
        self.language = language
        super().__init__(f"Unsupported language: {language!r}")


class InvalidProblemIdError(PolyjudgeError, ValueError):
    """Raised when a problem identifier is not 24 hexadecimal characters.

    Example:
        ```python
        raise InvalidProblemIdError("not-an-id")
        ```
    """

    def __init__(self, problem_id: object) -> None:
        """Store the rejected identifier.

        Example:
            ```python
            err = InvalidProblemIdError("xyz")
            ```
        """
        self.problem_id = problem_id
        super().__init__("Invalid problem ID format")


class MissingFieldError(PolyjudgeError, ValueError):
    """Raised when a request or record lacks required fields.

    Example:
        ```python
        raise MissingFieldError(["code"])
        ```
    """

    def __init__(self, fields: list[str]) -> None:
        """Store the names of the missing fields.

        Example:
            ```python
            err = MissingFieldError(["title", "testCases"])
            ```
        """
        self.fields = fields
        super().__init__(f"Missing required fields: {', '.join(fields)}")


class ProblemNotFoundError(PolyjudgeError, LookupError):
    """Raised when a well-formed problem identifier has no stored problem.

    Example:
        ```python
        raise ProblemNotFoundError("65a1f0c2e4b0a1b2c3d4e5f6")
        ```
    """

    def __init__(self, problem_id: str) -> None:
        """Store the identifier that was looked up.

        Example:
            ```python
            err = ProblemNotFoundError("65a1f0c2e4b0a1b2c3d4e5f6")
            ```
        """
        self.problem_id = problem_id
        super().__init__("Problem not found")
