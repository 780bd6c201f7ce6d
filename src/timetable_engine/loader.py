"""Loading requests and results from JSON files."""

import json
import logging
from pathlib import Path
from typing import Any

from .exceptions import InvalidInputError
from .models import ScheduleRequest, ScheduleResult

logger = logging.getLogger(__name__)


def _read_json(path: str | Path) -> Any:
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as exc:
        raise InvalidInputError(f"file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"{path} is not valid JSON: {exc}") from exc


def load_schedule_request(path: str | Path) -> ScheduleRequest:
    """Load a schedule request (owner, members, settings, week_start).

    Raises:
        InvalidInputError: If the file is missing, not JSON or malformed
    """
    request = ScheduleRequest.from_dict(_read_json(path))
    logger.debug(f"Loaded request with {len(request.members)} member(s) from {path}")
    return request


def load_schedule_result(path: str | Path) -> ScheduleResult:
    """Load a result previously written by the JSON exporter."""
    data = _read_json(path)
    if not isinstance(data, dict):
        raise InvalidInputError("result must be a JSON object")
    try:
        return ScheduleResult.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidInputError(f"malformed result: {exc}") from exc
