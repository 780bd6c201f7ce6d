"""Engine configuration loaded from a JSON file and the environment."""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from .constants import (
    DEFAULT_TRAVEL_MINUTES,
    DIRECTIONS_BATCH_SIZE,
    TRAVEL_CACHE_MAX_SIZE,
    TRAVEL_CACHE_TTL_SECONDS,
)
from .exceptions import InvalidInputError

logger = logging.getLogger(__name__)

ENV_PREFIX = "TIMETABLE_"

DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"


@dataclass
class EngineConfig:
    """Settings for the engine's external collaborators."""

    directions_api_key: str = ""
    directions_url: str = DISTANCE_MATRIX_URL
    request_timeout_seconds: float = 10.0
    default_travel_minutes: int = DEFAULT_TRAVEL_MINUTES
    cache_ttl_seconds: int = TRAVEL_CACHE_TTL_SECONDS
    cache_max_size: int = TRAVEL_CACHE_MAX_SIZE
    batch_size: int = DIRECTIONS_BATCH_SIZE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineConfig":
        """Build a config from a dictionary, ignoring unknown keys."""
        known = {f.name: f for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.debug(f"Ignoring unknown config key: {key}")
                continue
            values[key] = _coerce(key, value, type(getattr(cls, key)))
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        # Never write the key back out
        data["directions_api_key"] = "***" if self.directions_api_key else ""
        return data


def _coerce(key: str, value: Any, target: type) -> Any:
    try:
        return target(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"bad value {value!r}: {exc}", field=f"config.{key}") from exc


def load_config(path: Path | None = None, environ: dict[str, str] | None = None) -> EngineConfig:
    """Load engine configuration.

    Values come from the JSON file (if given) and are then overridden by
    ``TIMETABLE_<FIELD>`` environment variables, e.g.
    ``TIMETABLE_DIRECTIONS_API_KEY``.

    Args:
        path: Optional JSON config file
        environ: Environment mapping, defaults to os.environ

    Returns:
        EngineConfig

    Raises:
        InvalidInputError: If the file is unreadable or a value has the wrong type
    """
    data: dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise InvalidInputError(f"cannot read config {path}: {exc}", field="config") from exc
        if not isinstance(data, dict):
            raise InvalidInputError("config must be a JSON object", field="config")
        logger.debug(f"Loaded config from {path}")

    environ = os.environ if environ is None else environ
    for f in fields(EngineConfig):
        env_key = f"{ENV_PREFIX}{f.name.upper()}"
        if env_key in environ:
            data[f.name] = environ[env_key]

    return EngineConfig.from_dict(data)
