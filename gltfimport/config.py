"""
Import limits and validation mode.

Values come from GLTFIMPORT_* environment variables, optionally loaded from a
.env file with python-dotenv.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from dotenv import dotenv_values

_MIB = 1024 * 1024

_ENV_PREFIX = "GLTFIMPORT_"

_INT_SETTINGS = (
    "max_json_bytes",
    "max_binary_bytes",
    "max_buffer_bytes",
    "max_accessor_count",
    "max_sparse_count",
)


@dataclass(frozen=True)
class ImportConfig:
    max_json_bytes: int = 64 * _MIB
    max_binary_bytes: int = 2048 * _MIB
    max_buffer_bytes: int = 2048 * _MIB
    max_accessor_count: int = 1 << 28
    max_sparse_count: int = 1 << 24
    collect_all_errors: bool = False
    supported_extensions: frozenset[str] = field(default_factory=lambda: frozenset({
        "KHR_texture_transform",
        "KHR_materials_emissive_strength",
        "KHR_lights_punctual",
    }))


DEFAULT_CONFIG = ImportConfig()


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_config(env_path: Path | str | None = None) -> ImportConfig:
    """Build an ImportConfig from the process environment and an optional .env file.

    Process environment wins over the file, matching load_dotenv(override=False).
    """
    values: dict[str, str | None] = {}
    if env_path is not None:
        values.update(dotenv_values(env_path))
    values.update({k: v for k, v in os.environ.items() if k.startswith(_ENV_PREFIX)})

    overrides = {}
    for name in _INT_SETTINGS:
        raw = values.get(_ENV_PREFIX + name.upper())
        if raw:
            try:
                overrides[name] = int(raw)
            except ValueError:
                raise ValueError(f"{_ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}") from None

    raw = values.get(_ENV_PREFIX + "COLLECT_ALL_ERRORS")
    if raw:
        overrides["collect_all_errors"] = _parse_bool(raw)

    raw = values.get(_ENV_PREFIX + "SUPPORTED_EXTENSIONS")
    if raw:
        overrides["supported_extensions"] = frozenset(
            name.strip() for name in raw.split(",") if name.strip()
        )

    return replace(DEFAULT_CONFIG, **overrides)
