from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

OutputKind = Literal["jsonl", "http"]
OUTPUT_KINDS = ("jsonl", "http")


@dataclass(frozen=True)
class OutputConfig:
    kind: OutputKind = "jsonl"
    path: str | None = None
    url: str | None = None
    token_env: str | None = None


@dataclass(frozen=True)
class AppConfig:
    repo: str = ""
    flush_pending: bool = False
    output: OutputConfig = field(default_factory=OutputConfig)


def load_app_config(config_path: str | Path) -> AppConfig:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Config {path} is not valid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a mapping")

    flush_pending = data.get("flush_pending", False)
    if not isinstance(flush_pending, bool):
        raise ValueError("flush_pending must be true or false")

    return AppConfig(
        repo=str(data.get("repo") or ""),
        flush_pending=flush_pending,
        output=_parse_output(data.get("output")),
    )


def _parse_output(data: Any) -> OutputConfig:
    if data is None:
        return OutputConfig()
    if not isinstance(data, dict):
        raise ValueError("Config 'output' must be a mapping")

    kind = str(data.get("kind") or "jsonl").strip().lower()
    if kind not in OUTPUT_KINDS:
        raise ValueError(
            f"Unsupported output kind '{kind}'. Expected one of: {', '.join(OUTPUT_KINDS)}"
        )

    url = _optional_str(data.get("url"))
    if kind == "http" and not url:
        raise ValueError("output.url is required when output.kind is 'http'")

    return OutputConfig(
        kind=kind,
        path=_optional_str(data.get("path")),
        url=url,
        token_env=_optional_str(data.get("token_env")),
    )


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None
