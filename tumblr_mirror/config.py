# === FILE: tumblr_mirror/config.py ===
"""
Loading and validation of the TumblrMirror run configuration.
Pydantic describes the schema; values come from a YAML/JSON file, the
command line, or both (command line wins).
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

DEFAULT_REQUEST_TIME_MS = 5000
DEFAULT_USER_AGENT = "TumblrMirror/1.0"


class MirrorConfig(BaseModel):
    """Configuration for one mirror run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    tumblr_name: str = Field(..., min_length=1, pattern=r"^[A-Za-z0-9-]+$", description="Name of the blog to mirror.")
    db_file: Path = Field(..., description="SQLite file holding mirrored content.")
    request_time: int = Field(DEFAULT_REQUEST_TIME_MS, gt=0, description="Milliseconds between network requests.")
    timeout: float = Field(30.0, gt=0, description="Per-request timeout (seconds).")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="User-Agent header.")
    base_url: Optional[HttpUrl] = Field(None, description="Site root, defaults to http://<name>.tumblr.com.")

    @field_validator("db_file", mode="before")
    def _expand_db_file(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @property
    def site_url(self) -> str:
        if self.base_url is not None:
            return str(self.base_url).rstrip("/")
        return f"http://{self.tumblr_name}.tumblr.com"

    @property
    def robots_url(self) -> str:
        return f"{self.site_url}/robots.txt"

    @property
    def requests_per_second(self) -> float:
        return 1000.0 / self.request_time


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def read_config_file(path: Union[str, Path]) -> dict[str, Any]:
    """Read a YAML or JSON config file into a plain mapping."""
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: Union[str, Path]) -> MirrorConfig:
    """
    Read YAML or JSON and return a validated MirrorConfig.
    Raises FileNotFoundError if the file is missing.
    """
    return MirrorConfig(**read_config_file(path))


def build_config(path: Union[str, Path, None] = None, **overrides: Any) -> MirrorConfig:
    """
    Merge *overrides* (None values ignored) over the optional config file.
    """
    data: dict[str, Any] = read_config_file(path) if path is not None else {}
    data.update({k: v for k, v in overrides.items() if v is not None})
    return MirrorConfig(**data)
