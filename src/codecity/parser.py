"""
Parser module for city snapshots.

Reads the JSON document written by the extractor:

    {"packages": [{"name": "...",
                   "classes": [{"name": "...", "linesOfCode": 120,
                                "gitMetadata": {"commits": 3, "authors": 1,
                                                "lastModified": "..."}}]}]}

The top-level shape is validated strictly (a missing or non-list
"packages" is an error). Everything below it is coerced permissively,
because the extractor is best-effort: missing or negative numbers become
0 and unparseable dates become None.
"""

import json
import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx

from .models import CityData, ClassRecord, GitMetadata, PackageRecord

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "data.json"
ANONYMOUS_CLASS = "<anonymous>"


class CityDataError(Exception):
    """Base class for snapshot errors."""

    pass


class LoadError(CityDataError):
    """Raised when a snapshot cannot be fetched, read or decoded."""

    pass


def _coerce_count(value: Any, field_name: str) -> int:
    """Coerce a count to a non-negative int, defaulting to 0."""
    if isinstance(value, bool):
        value = None
    # json decodes 1e400 as inf and accepts NaN and Infinity
    if isinstance(value, int) or (
        isinstance(value, float) and math.isfinite(value)
    ):
        if value < 0:
            logger.debug("Negative %s %r coerced to 0", field_name, value)
            return 0
        return int(value)
    if isinstance(value, str):
        try:
            return max(0, int(value.strip()))
        except ValueError:
            pass
    if value is not None:
        logger.debug("Non-numeric %s %r coerced to 0", field_name, value)
    return 0


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Accepts a trailing "Z" and git's "%ai" layout ("2025-11-07 10:30:00
    +0100"). Naive timestamps are taken as UTC. Returns None when the value
    is missing or cannot be parsed.
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.strptime(text, "%Y-%m-%d %H:%M:%S %z")
        except ValueError:
            logger.debug("Unparseable lastModified %r ignored", value)
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_git_metadata(raw: Any) -> Optional[GitMetadata]:
    if not isinstance(raw, dict):
        return None
    return GitMetadata(
        commits=_coerce_count(raw.get("commits"), "commits"),
        authors=_coerce_count(raw.get("authors"), "authors"),
        last_modified=parse_timestamp(raw.get("lastModified")),
    )


def _parse_class(raw: Any) -> Optional[ClassRecord]:
    if not isinstance(raw, dict):
        logger.debug("Skipping non-object class entry %r", raw)
        return None

    name = raw.get("name")
    if not isinstance(name, str) or not name:
        name = ANONYMOUS_CLASS

    return ClassRecord(
        name=name,
        lines_of_code=_coerce_count(raw.get("linesOfCode"), "linesOfCode"),
        git_metadata=_parse_git_metadata(raw.get("gitMetadata")),
    )


def _parse_package(raw: Any, index: int) -> PackageRecord:
    if not isinstance(raw, dict):
        raise LoadError(f"Invalid data format: packages[{index}] is not an object")

    name = raw.get("name")
    if not isinstance(name, str):
        name = str(name) if name is not None else ""

    raw_classes = raw.get("classes")
    if not isinstance(raw_classes, list):
        logger.debug("Package %r has no classes list; treating as empty", name)
        raw_classes = []

    classes = tuple(
        record for record in (_parse_class(c) for c in raw_classes) if record
    )
    return PackageRecord(name=name, classes=classes)


def parse_city_data(source: Union[str, bytes, dict]) -> CityData:
    """
    Build a CityData snapshot from JSON text or an already-decoded object.

    Args:
        source: JSON text/bytes, or the decoded top-level object.

    Returns:
        The parsed snapshot.

    Raises:
        LoadError: If the JSON is malformed or "packages" is missing or not
            a list.
    """
    if isinstance(source, (str, bytes)):
        try:
            document = json.loads(source)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise LoadError(f"Invalid JSON: {e}") from e
    else:
        document = source

    if not isinstance(document, dict):
        raise LoadError("Invalid data format: top level must be an object")

    packages = document.get("packages")
    if not isinstance(packages, list):
        raise LoadError("Invalid data format: missing packages array")

    return CityData(
        packages=tuple(_parse_package(p, i) for i, p in enumerate(packages))
    )


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_city_data(source: Union[str, Path], timeout: float = 10.0) -> CityData:
    """
    Load a snapshot from a file path or an http(s) URL.

    Args:
        source: Path to a JSON file, or a URL.
        timeout: Network timeout in seconds for URLs.

    Returns:
        The parsed snapshot.

    Raises:
        LoadError: On network failure, non-success status, unreadable file
            or invalid content.
    """
    source = str(source)

    if _is_url(source):
        try:
            response = httpx.get(source, timeout=timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise LoadError(
                f"Failed to load data: {source} returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise LoadError(f"Failed to load data from {source}: {e}") from e
        text = response.text
    else:
        try:
            text = Path(source).read_text(encoding="utf-8")
        except OSError as e:
            raise LoadError(f"Failed to read {source}: {e.strerror or e}") from e
        except UnicodeDecodeError as e:
            raise LoadError(f"Invalid JSON: {e}") from e

    data = parse_city_data(text)
    logger.debug(
        "Loaded %d packages from %s", len(data.packages), source
    )
    return data


def load_with_fallback(
    primary: Union[str, Path],
    choose_file: Callable[[LoadError], Optional[Union[str, Path]]],
    timeout: float = 10.0,
) -> CityData:
    """
    Load ``primary``; if that fails, ask once for another source.

    Args:
        primary: The default location (path or URL).
        choose_file: Called with the load error; returns another path, or
            None if the user gives up.
        timeout: Network timeout for URLs.

    Returns:
        The parsed snapshot.

    Raises:
        LoadError: If the fallback is declined, or the chosen file also
            fails to load.
    """
    try:
        return load_city_data(primary, timeout=timeout)
    except LoadError as e:
        logger.warning("Could not load %s: %s", primary, e)
        chosen = choose_file(e)
        if chosen is None:
            raise
        return load_city_data(chosen, timeout=timeout)
