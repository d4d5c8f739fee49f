from __future__ import annotations

import io
import json
from types import SimpleNamespace

import pytest
import requests

from git_changes.errors import SinkError
from git_changes.models import Change
from git_changes.sinks import HttpSink, JsonLinesSink, ListSink, build_http_sink


def _change(path: str = "foo/bar/baz.rs", ext: str | None = "rs") -> Change:
    return Change(
        repo="moon",
        sha="61708727af02089cef4a72c6a532ddf332111b14",
        author="luna@moon.com",
        timestamp="2019-08-08 18:03:38 -0400",
        path=path,
        ext=ext,
        category="default",
        additions=6,
        deletions=3,
    )


class FakeSession:
    def __init__(self, status_code: int = 201, exc: Exception | None = None) -> None:
        self.status_code = status_code
        self.exc = exc
        self.calls: list[dict] = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(status_code=self.status_code)


def test_json_lines_sink_writes_one_object_per_line() -> None:
    stream = io.StringIO()
    sink = JsonLinesSink(stream)

    sink.emit(_change())
    sink.emit(_change(path="Makefile", ext=None))

    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first == {
        "repo": "moon",
        "sha": "61708727af02089cef4a72c6a532ddf332111b14",
        "author": "luna@moon.com",
        "timestamp": "2019-08-08 18:03:38 -0400",
        "path": "foo/bar/baz.rs",
        "ext": "rs",
        "category": "default",
        "additions": 6,
        "deletions": 3,
    }
    assert "ext" not in json.loads(lines[1])


def test_list_sink_fails_after_limit() -> None:
    sink = ListSink(fail_after=2)
    sink.emit(_change())
    sink.emit(_change())

    with pytest.raises(SinkError):
        sink.emit(_change())

    assert len(sink.changes) == 2


def test_http_sink_posts_change_with_token() -> None:
    session = FakeSession()
    sink = HttpSink("https://collector.example/changes", token="s3cret", session=session)

    sink.emit(_change())

    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["url"] == "https://collector.example/changes"
    assert call["headers"]["Authorization"] == "Bearer s3cret"
    assert call["json"]["path"] == "foo/bar/baz.rs"
    assert call["timeout"] == 30


def test_http_sink_raises_on_error_status() -> None:
    sink = HttpSink("https://collector.example/changes", session=FakeSession(status_code=503))

    with pytest.raises(SinkError, match="503"):
        sink.emit(_change())


def test_http_sink_raises_on_request_exception() -> None:
    session = FakeSession(exc=requests.ConnectionError("refused"))
    sink = HttpSink("https://collector.example/changes", session=session)

    with pytest.raises(SinkError):
        sink.emit(_change())


def test_build_http_sink_reads_token_from_env(monkeypatch) -> None:
    monkeypatch.setenv("CHANGES_TOKEN", "from-env")

    sink = build_http_sink("https://collector.example/changes", "CHANGES_TOKEN")

    assert sink.headers["Authorization"] == "Bearer from-env"


def test_build_http_sink_without_token(monkeypatch) -> None:
    monkeypatch.delenv("CHANGES_TOKEN", raising=False)

    sink = build_http_sink("https://collector.example/changes", "CHANGES_TOKEN")

    assert "Authorization" not in sink.headers
