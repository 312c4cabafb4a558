"""JSON output artifact for the enumerated seed page."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Union

from .dom import ElementRecord
from .errors import LogWriteError

LOGGER = logging.getLogger(__name__)


def elements_to_json(elements: Iterable[ElementRecord]) -> str:
    """Serialize element records as a pretty-printed JSON array."""
    return json.dumps(
        [element.to_dict() for element in elements],
        indent=2,
        ensure_ascii=False,
    )


def write_elements(path: Union[str, Path], elements: Iterable[ElementRecord]) -> Path:
    """Write the records to *path*, replacing any previous run's file.

    Raises:
        LogWriteError: If the file cannot be written.
    """
    path = Path(path)
    try:
        if path.parent != Path("."):
            path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(elements_to_json(elements), encoding="utf-8")
    except OSError as exc:
        raise LogWriteError(
            f"Error writing to JSON file: {exc}", path=str(path)
        ) from exc

    LOGGER.info("Data saved to %s", path)
    return path
