from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .chunkers.recursive import DEFAULT_SEPARATORS
from .errors import ConfigurationError

MIN_CHUNK_SIZE = 100
MAX_CHUNK_SIZE = 5000
MAX_TOP_K = 10


@dataclass(frozen=True)
class EngineConfig:
    chunk_size: int = 1000
    chunk_overlap: int = 100
    top_k: int = 4
    max_top_k: int = MAX_TOP_K
    separators: tuple[str, ...] = DEFAULT_SEPARATORS

    def __post_init__(self) -> None:
        validate_chunking(self.chunk_size, self.chunk_overlap)
        if self.max_top_k < 1:
            raise ConfigurationError(f"max_top_k must be at least 1, got {self.max_top_k}", field="max_top_k")
        validate_top_k(self.top_k, self.max_top_k)


def _as_int(cfg: dict, key: str, default: int) -> int:
    value = cfg.get(key, default)
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", field=key)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", field=key) from e


def validate_chunking(chunk_size: int, chunk_overlap: int) -> None:
    if not MIN_CHUNK_SIZE <= chunk_size <= MAX_CHUNK_SIZE:
        raise ConfigurationError(
            f"chunk_size must be between {MIN_CHUNK_SIZE} and {MAX_CHUNK_SIZE}, got {chunk_size}",
            field="chunk_size",
        )
    if not 0 <= chunk_overlap < chunk_size:
        raise ConfigurationError(
            f"chunk_overlap must be at least 0 and smaller than chunk_size ({chunk_size}), got {chunk_overlap}",
            field="chunk_overlap",
        )


def validate_top_k(k: int, max_top_k: int = MAX_TOP_K) -> None:
    if isinstance(k, bool) or not isinstance(k, int) or not 1 <= k <= max_top_k:
        raise ConfigurationError(f"k must be an integer between 1 and {max_top_k}, got {k!r}", field="k")


def config_from_cfg(cfg: dict | None) -> EngineConfig:
    # allow empty cfg
    cfg = cfg or {}
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"Config must be a mapping, got {type(cfg).__name__}")

    separators = cfg.get("separators")
    if separators is None:
        separators = DEFAULT_SEPARATORS
    elif not isinstance(separators, (list, tuple)) or not all(isinstance(s, str) for s in separators):
        raise ConfigurationError("separators must be a list of strings", field="separators")

    return EngineConfig(
        chunk_size=_as_int(cfg, "chunk_size", 1000),
        chunk_overlap=_as_int(cfg, "chunk_overlap", 100),
        top_k=_as_int(cfg, "top_k", 4),
        max_top_k=_as_int(cfg, "max_top_k", MAX_TOP_K),
        separators=tuple(separators),
    )


def load_config(path: Path | str) -> EngineConfig:
    path = Path(path)
    try:
        raw: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e.strerror}", field="config") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file {path} is not valid YAML", field="config") from e
    return config_from_cfg(raw)
