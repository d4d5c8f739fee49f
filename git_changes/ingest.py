from __future__ import annotations

import io
import re
import subprocess
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import Iterable, Iterator, TextIO

from git_changes.errors import GitLogError

GIT_LOG_ARGS = [
    "log",
    '--pretty=format:"%H","%ae","%ai"',
    "--numstat",
    "--no-merges",
]

_CREDENTIAL_RE = re.compile(r"(https?://)[^/@\s]+@")


def read_lines(stream: TextIO | Iterable[str]) -> Iterator[str]:
    for line in stream:
        yield line.rstrip("\r\n")


def open_stdin(stack: ExitStack) -> TextIO:
    """Re-decode stdin as UTF-8, replacing undecodable bytes."""
    buffer = getattr(sys.stdin, "buffer", None)
    if buffer is None:
        return sys.stdin
    stream = io.TextIOWrapper(buffer, encoding="utf-8", errors="replace")
    stack.callback(stream.detach)
    return stream


def read_git_log(repo_dir: str | Path) -> list[str]:
    cmd = ["git", "-C", str(repo_dir), *GIT_LOG_ARGS]
    proc = subprocess.run(
        cmd, check=False, capture_output=True, text=True, encoding="utf-8", errors="replace"
    )
    if proc.returncode != 0:
        stderr = _redact(proc.stderr.strip()) or f"exit status {proc.returncode}"
        raise GitLogError(f"git log failed for {repo_dir}: {stderr}")
    return proc.stdout.splitlines()


def default_repo_label(repo_dir: str | Path) -> str:
    return Path(repo_dir).resolve().name


def _redact(text: str) -> str:
    return _CREDENTIAL_RE.sub(r"\1***@", text)
