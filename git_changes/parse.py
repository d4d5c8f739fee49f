from __future__ import annotations

import re

from git_changes.models import Category, Change, Header, ParseFailure, PathStat

HEADER_RE = re.compile(
    r"""
    "(?P<sha>\S+)"
    ,
    "(?P<author>\S+)"
    ,
    "(?P<timestamp>.+)"
    """,
    re.VERBOSE,
)

PATH_STAT_RE = re.compile(
    r"""
    (?P<additions>\d+)
    \s+
    (?P<deletions>\d+)
    \s+
    (?P<path>\S+)
    """,
    re.VERBOSE | re.ASCII,
)

BINARY_PLACEHOLDER = "-"


def parse_header(line: str) -> Header | ParseFailure:
    match = HEADER_RE.match(line)
    if match is None:
        return ParseFailure(line=line, grammar="header")
    return Header(
        sha=match.group("sha"),
        author=match.group("author"),
        timestamp=match.group("timestamp"),
    )


def parse_path_stat(line: str) -> PathStat | ParseFailure:
    match = PATH_STAT_RE.match(line)
    if match is None:
        return ParseFailure(line=line, grammar="path")
    return PathStat(
        additions=int(match.group("additions")),
        deletions=int(match.group("deletions")),
        path=match.group("path"),
    )


def is_binary_marker(line: str) -> bool:
    return line.startswith(BINARY_PLACEHOLDER)


def categorize(path: str) -> Category:
    if "test" in path:
        return "test"
    return "default"


def extension(path: str) -> str | None:
    """Return the text after the last dot of the final path component.

    Dotfiles without a further dot (``.gitignore``) have no extension, nor do
    the ``.`` and ``..`` components.
    """
    name = path.rstrip("/").rsplit("/", 1)[-1]
    if name in {"", ".", ".."}:
        return None
    idx = name.rfind(".")
    if idx <= 0:
        return None
    return name[idx + 1 :]


def assemble_change(repo: str, header: Header, stat: PathStat) -> Change:
    return Change(
        repo=repo,
        sha=header.sha,
        author=header.author,
        timestamp=header.timestamp,
        path=stat.path,
        ext=extension(stat.path),
        category=categorize(stat.path),
        additions=stat.additions,
        deletions=stat.deletions,
    )
