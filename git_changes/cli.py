from __future__ import annotations

import argparse
import logging
import sys
from contextlib import ExitStack
from typing import Iterable, TextIO

from git_changes.changes import run
from git_changes.config import AppConfig, OutputConfig, load_app_config
from git_changes.errors import GitLogError
from git_changes.ingest import default_repo_label, open_stdin, read_git_log, read_lines
from git_changes.sinks import ChangeSink, JsonLinesSink, build_http_sink

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Turn `git log --numstat` output into categorized change records"
    )
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Log file to read, '-' for stdin (default)",
    )
    parser.add_argument("--repo", default=None, help="Repository label for every record")
    parser.add_argument(
        "--git-dir",
        default=None,
        help="Run git log in this repository instead of reading INPUT",
    )
    parser.add_argument("--config", default=None, help="Run config YAML")
    parser.add_argument(
        "--flush",
        action="store_true",
        help="Emit a change still pending when the input ends",
    )
    parser.add_argument("--output", default=None, help="Write JSON lines to this file")
    parser.add_argument("--http-url", default=None, help="POST each change to this URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        app_config = load_app_config(args.config) if args.config else AppConfig()
    except (FileNotFoundError, ValueError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    output = _merge_output(app_config.output, args)
    repo = args.repo if args.repo is not None else app_config.repo
    flush_pending = args.flush or app_config.flush_pending

    with ExitStack() as stack:
        if args.git_dir:
            try:
                lines: Iterable[str] = read_git_log(args.git_dir)
            except GitLogError as exc:
                print(f"error: {exc}", file=sys.stderr)
                return 1
            if args.repo is None and not app_config.repo:
                repo = default_repo_label(args.git_dir)
        elif args.input == "-":
            lines = read_lines(open_stdin(stack))
        else:
            try:
                fh = stack.enter_context(
                    open(args.input, "r", encoding="utf-8", errors="replace")
                )
            except OSError as exc:
                print(f"Input error: {exc}", file=sys.stderr)
                return 1
            lines = read_lines(fh)

        try:
            sink = _build_sink(output, stack)
        except OSError as exc:
            print(f"Output error: {exc}", file=sys.stderr)
            return 1

        result = run(repo, lines, sink, flush_pending=flush_pending)

    stats = result.stats
    logger.info(
        "lines=%d emitted=%d binary=%d commits=%d dropped=%d",
        stats.lines_read,
        stats.emitted,
        stats.skipped_binary,
        stats.commits,
        stats.pending_dropped,
    )
    if not result.ok:
        print(f"{result.error.kind} error: {result.error}", file=sys.stderr)
        return 1
    return 0


def _merge_output(output: OutputConfig, args: argparse.Namespace) -> OutputConfig:
    if args.http_url:
        return OutputConfig(kind="http", url=args.http_url, token_env=output.token_env)
    if args.output:
        return OutputConfig(kind="jsonl", path=args.output)
    return output


def _build_sink(output: OutputConfig, stack: ExitStack) -> ChangeSink:
    if output.kind == "http":
        sink = build_http_sink(output.url or "", output.token_env)
        stack.callback(sink.session.close)
        return sink
    stream: TextIO = sys.stdout
    if output.path:
        stream = stack.enter_context(open(output.path, "w", encoding="utf-8"))
    return JsonLinesSink(stream)


if __name__ == "__main__":
    raise SystemExit(main())
