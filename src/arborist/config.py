"""Application configuration defaults and loading."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import tomli_w
import typer

from arborist.embedding.encoder import DEFAULT_MODEL, DEFAULT_SPARSE_MODEL
from arborist.errors import ConfigError

LOGGER = logging.getLogger(__name__)

APP_NAME = "arborist"
CONFIG_FILE_NAME = "config.toml"

DEFAULT_SKIP_DIRS = (
    "node_modules",
    "downloaded-torrents",
    "target",
    "build",
    "dist",
    ".git",
)


def default_config_path() -> Path:
    """Per-user config file location (e.g. ``~/.config/arborist/config.toml``)."""
    return Path(typer.get_app_dir(APP_NAME)) / CONFIG_FILE_NAME


@dataclass(slots=True)
class ScanConfig:
    max_tokens: tuple[int, int] = (20, 40)
    model_name: str = "gemma2:2b"
    vision_model: str = "llava:7b"
    tokenizer_name: str = "bert-base-cased"
    embedding_model: str = DEFAULT_MODEL
    sparse_model: str = DEFAULT_SPARSE_MODEL
    skip_hidden: bool = True
    skip_dirs: tuple[str, ...] = DEFAULT_SKIP_DIRS
    max_depth: int = 10
    max_content_chars: int = 12000

    def __post_init__(self) -> None:
        self.max_tokens = tuple(self.max_tokens)
        self.skip_dirs = tuple(self.skip_dirs)
        if len(self.max_tokens) != 2:
            raise ConfigError(f"max_tokens must be a [min, max] pair, got {self.max_tokens!r}")
        low, high = self.max_tokens
        if low <= 0 or high < low:
            raise ConfigError(f"Invalid token window [{low}, {high}]")
        if self.max_depth < 1:
            raise ConfigError("max_depth must be at least 1")


@dataclass(slots=True)
class QueryConfig:
    top_k_results: int = 5
    hnsw_ef: int = 128

    def __post_init__(self) -> None:
        if self.top_k_results < 1:
            raise ConfigError("top_k_results must be at least 1")


@dataclass(slots=True)
class AppConfig:
    db_url: str = "http://localhost:6334"
    collection_name: str = "file_data"
    llm_url: str = "http://localhost:11434"
    llm_timeout: float = 120.0
    db_timeout: int = 60
    scan: ScanConfig = field(default_factory=ScanConfig)
    query: QueryConfig = field(default_factory=QueryConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AppConfig:
        """Build a config from parsed TOML, rejecting unknown keys."""
        values = dict(data)
        _check_keys(cls, values, "")
        scan = values.pop("scan", {})
        query = values.pop("query", {})
        if not isinstance(scan, Mapping) or not isinstance(query, Mapping):
            raise ConfigError("[scan] and [query] must be tables")
        _check_keys(ScanConfig, scan, "scan.")
        _check_keys(QueryConfig, query, "query.")
        try:
            return cls(scan=ScanConfig(**scan), query=QueryConfig(**query), **values)
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["scan"]["max_tokens"] = list(self.scan.max_tokens)
        data["scan"]["skip_dirs"] = list(self.scan.skip_dirs)
        return data


def _check_keys(schema: type, values: Mapping[str, Any], prefix: str) -> None:
    known = {f.name for f in fields(schema)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(prefix + key for key in unknown)}")


def _read_config(path: Path) -> AppConfig:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Malformed config file {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    return AppConfig.from_dict(data)


def write_config(config: AppConfig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        tomli_w.dump(config.to_dict(), handle)


def load_config(path: Path | None = None) -> tuple[AppConfig, Path]:
    """Load configuration and return it together with the file it came from.

    An explicit ``path`` must exist. Without one, the per-user default file is
    read, or created with default values when it does not exist yet.
    """
    if path is not None:
        return _read_config(Path(path)), Path(path)

    default_path = default_config_path()
    if default_path.exists():
        return _read_config(default_path), default_path

    config = AppConfig()
    try:
        write_config(config, default_path)
    except OSError as exc:
        LOGGER.warning("Could not write default config to %s: %s", default_path, exc)
    else:
        LOGGER.info("Default config file created at: %s", default_path)
    return config, default_path
