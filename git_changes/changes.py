"""Line state machine turning ``git log --numstat`` output into change records.

The machine has three states:

``Reset``
    expecting a commit header.
``AwaitingPath``
    a header is known; the next line is a path-stat line, a binary marker,
    a blank separator, or the next commit's header when the commit touched
    no files.
``Ready``
    a header and a path-stat are pending. Whatever line arrives next causes
    the pending record to be emitted; that line only decides whether the
    commit ends (blank) or continues, it is not parsed itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Union

from git_changes.errors import ChangeLogError, HeaderParseError, PathParseError, SinkError
from git_changes.models import Header, ParseFailure, PathStat
from git_changes.parse import assemble_change, is_binary_marker, parse_header, parse_path_stat
from git_changes.sinks import ChangeSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class AwaitingPath:
    header: Header


@dataclass(frozen=True)
class Ready:
    header: Header
    stat: PathStat


State = Union[Reset, AwaitingPath, Ready]
Pending = tuple[Header, PathStat]


@dataclass
class RunStats:
    lines_read: int = 0
    emitted: int = 0
    skipped_binary: int = 0
    commits: int = 0
    pending_dropped: int = 0


@dataclass
class RunResult:
    stats: RunStats
    error: ChangeLogError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def advance(state: State, line: str, lineno: int) -> tuple[State, Pending | None]:
    """Apply one input line to ``state``.

    Returns the next state and, when the transition emits, the header and
    path-stat to assemble into a change. Raises HeaderParseError or
    PathParseError when the line fits no grammar allowed in ``state``.
    """
    if isinstance(state, Reset):
        header = parse_header(line)
        if isinstance(header, ParseFailure):
            raise HeaderParseError("expected a commit header", line=line, lineno=lineno)
        return AwaitingPath(header), None

    if isinstance(state, AwaitingPath):
        if not line:
            return Reset(), None
        if is_binary_marker(line):
            return state, None
        stat = parse_path_stat(line)
        if not isinstance(stat, ParseFailure):
            return Ready(state.header, stat), None
        # no path lines for the previous commit, so this may be the next header
        header = parse_header(line)
        if not isinstance(header, ParseFailure):
            return AwaitingPath(header), None
        raise PathParseError(
            "expected a path-stat line or a commit header", line=line, lineno=lineno
        )

    pending = (state.header, state.stat)
    if not line:
        return Reset(), pending
    return AwaitingPath(state.header), pending


def process_lines(
    repo: str,
    lines: Iterable[str],
    sink: ChangeSink,
    *,
    flush_pending: bool = False,
    stats: RunStats | None = None,
) -> RunStats:
    stats = stats if stats is not None else RunStats()
    state: State = Reset()

    for lineno, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        stats.lines_read = lineno
        previous = state
        state, pending = advance(state, line, lineno)

        if isinstance(previous, Reset):
            stats.commits += 1
        elif isinstance(previous, AwaitingPath) and line:
            if is_binary_marker(line):
                stats.skipped_binary += 1
            elif isinstance(state, AwaitingPath):
                stats.commits += 1
        if pending is not None:
            _emit(repo, pending, sink, lineno)
            stats.emitted += 1

    if isinstance(state, Ready):
        if flush_pending:
            _emit(repo, (state.header, state.stat), sink, stats.lines_read)
            stats.emitted += 1
        else:
            stats.pending_dropped += 1
            logger.warning(
                "input ended with an unemitted change for %s:%s; dropped",
                state.header.sha,
                state.stat.path,
            )

    return stats


def run(
    repo: str,
    lines: Iterable[str],
    sink: ChangeSink,
    *,
    flush_pending: bool = False,
) -> RunResult:
    stats = RunStats()
    try:
        process_lines(repo, lines, sink, flush_pending=flush_pending, stats=stats)
    except ChangeLogError as exc:
        logger.debug("run stopped: %s", exc)
        return RunResult(stats=stats, error=exc)
    return RunResult(stats=stats)


def _emit(repo: str, pending: Pending, sink: ChangeSink, lineno: int) -> None:
    header, stat = pending
    change = assemble_change(repo, header, stat)
    try:
        sink.emit(change)
    except SinkError as exc:
        if exc.lineno is None:
            exc.lineno = lineno
        raise
    except (OSError, ValueError, TypeError) as exc:
        raise SinkError(f"sink failed: {exc}", lineno=lineno) from exc
    logger.debug("emitted %s:%s", change.sha, change.path)
