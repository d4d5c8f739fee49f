from __future__ import annotations

import json
import logging
import os
from typing import Any, Protocol, TextIO

import requests

from git_changes.errors import SinkError
from git_changes.models import Change

logger = logging.getLogger(__name__)


class ChangeSink(Protocol):
    def emit(self, change: Change) -> None:
        ...


class JsonLinesSink:
    """Writes one compact JSON object per change."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def emit(self, change: Change) -> None:
        self.stream.write(json.dumps(change.to_dict(), ensure_ascii=False, separators=(",", ":")))
        self.stream.write("\n")


class ListSink:
    def __init__(self, fail_after: int | None = None) -> None:
        self.changes: list[Change] = []
        self.fail_after = fail_after

    def emit(self, change: Change) -> None:
        if self.fail_after is not None and len(self.changes) >= self.fail_after:
            raise SinkError(f"sink refused change #{len(self.changes) + 1}")
        self.changes.append(change)


class HttpSink:
    def __init__(
        self,
        url: str,
        token: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def emit(self, change: Change) -> None:
        response = _safe_post(self.session, self.url, headers=self.headers, payload=change.to_dict())
        if response is None:
            raise SinkError(f"POST to {self.url} failed for {change.sha}:{change.path}")
        if response.status_code >= 400:
            raise SinkError(
                f"Collector error ({response.status_code}) for {change.sha}:{change.path}"
            )
        logger.debug("posted %s:%s to %s", change.sha, change.path, self.url)


def build_http_sink(url: str, token_env: str | None = None) -> HttpSink:
    token = os.getenv(token_env) if token_env else None
    return HttpSink(url, token=token)


def _safe_post(
    session: requests.Session,
    url: str,
    headers: dict[str, str] | None = None,
    payload: dict[str, Any] | None = None,
) -> requests.Response | None:
    try:
        return session.post(url, headers=headers, json=payload, timeout=30)
    except requests.RequestException as exc:
        logger.warning("request to %s raised %s", url, exc)
        return None
