from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

Category = Literal["test", "default"]
Grammar = Literal["header", "path"]


@dataclass(frozen=True)
class Header:
    sha: str
    author: str
    timestamp: str


@dataclass(frozen=True)
class PathStat:
    additions: int
    deletions: int
    path: str


@dataclass(frozen=True)
class ParseFailure:
    line: str
    grammar: Grammar


@dataclass(frozen=True)
class Change:
    repo: str
    sha: str
    author: str
    timestamp: str
    path: str
    ext: str | None
    category: Category
    additions: int
    deletions: int

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "repo": self.repo,
            "sha": self.sha,
            "author": self.author,
            "timestamp": self.timestamp,
            "path": self.path,
        }
        if self.ext is not None:
            data["ext"] = self.ext
        data["category"] = self.category
        data["additions"] = self.additions
        data["deletions"] = self.deletions
        return data
