from __future__ import annotations


class ChangeLogError(Exception):
    """A fatal failure while turning log lines into change records."""

    kind = "error"

    def __init__(self, message: str, line: str | None = None, lineno: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.lineno = lineno

    def __str__(self) -> str:
        if self.lineno is None:
            return self.message
        if self.line is None:
            return f"line {self.lineno}: {self.message}"
        return f"line {self.lineno}: {self.message}: {self.line!r}"


class HeaderParseError(ChangeLogError):
    kind = "header"


class PathParseError(ChangeLogError):
    kind = "path"


class SinkError(ChangeLogError):
    kind = "sink"


class GitLogError(ChangeLogError):
    kind = "git"
