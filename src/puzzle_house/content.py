from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import requests
from jsonschema import Draft202012Validator

from .errors import HallContentError

logger = logging.getLogger(__name__)


HALL_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["displayName", "rooms"],
    "properties": {
        "displayName": {"type": "string"},
        "rooms": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "key"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "image": {"type": ["string", "null"]},
                    "images": {"type": ["array", "null"], "items": {"type": "string"}},
                    "key": {"type": "string"},
                    "hints": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
    },
}

_HALL_VALIDATOR = Draft202012Validator(HALL_SCHEMA)


def validate_hall_document(hall_id: str, document: Any) -> Dict[str, Any]:
    """Check a decoded hall document against the hall schema.

    Raises:
        HallContentError listing every schema violation.
    """
    errors = sorted(_HALL_VALIDATOR.iter_errors(document), key=lambda e: [str(p) for p in e.path])
    if errors:
        for err in errors:
            logger.error("Hall '%s' schema error at %s: %s", hall_id, list(err.path), err.message)
        details = "; ".join(
            f"{'.'.join(str(p) for p in err.absolute_path) or 'root'}: {err.message}" for err in errors
        )
        raise HallContentError(f"Hall '{hall_id}' failed schema validation: {details}")
    return document


class HallSource(Protocol):
    """Anything that can fetch the raw content document for a hall id."""

    def fetch(self, hall_id: str) -> Dict[str, Any]:
        ...


class DirectoryHallSource:
    """Read hall documents from ``<root>/<hall_id>.json``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<DirectoryHallSource root={self.root}>"

    def fetch(self, hall_id: str) -> Dict[str, Any]:
        path = self.root / f"{hall_id}.json"
        if not path.is_file():
            raise HallContentError(f"Hall file not found: {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise HallContentError(
                f"Failed to parse hall JSON at {path} (line {e.lineno}, column {e.colno}): {e.msg}"
            ) from e
        except UnicodeDecodeError as e:
            raise HallContentError(f"Hall file {path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise HallContentError(f"Could not read hall file {path}: {e}") from e
        logger.debug("Read hall '%s' from %s", hall_id, path)
        return validate_hall_document(hall_id, document)


class HttpHallSource:
    """Fetch hall documents over HTTP from ``<base_url>/<hall_id>.json``.

    A single GET per call; failures are reported, never retried here.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        if session is None:
            session = requests.Session()
            session.headers.update({"Accept": "application/json", "User-Agent": "puzzle-house"})
        self.session = session
        self.timeout = timeout

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<HttpHallSource base_url={self.base_url}>"

    def url_for(self, hall_id: str) -> str:
        return f"{self.base_url}/{hall_id}.json"

    def fetch(self, hall_id: str) -> Dict[str, Any]:
        url = self.url_for(hall_id)
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise HallContentError(f"Request for {url} failed: {e}") from e
        if not resp.ok:
            raise HallContentError(f"HTTP error {resp.status_code} for {url}")
        try:
            document = resp.json()
        except ValueError as e:
            raise HallContentError(f"Response from {url} is not valid JSON") from e
        logger.debug("Fetched hall '%s' from %s", hall_id, url)
        return validate_hall_document(hall_id, document)


def source_from_location(location: str | Path) -> HallSource:
    """Pick a content source for a URL (``http://``/``https://``) or a directory path."""
    text = str(location)
    if text.startswith(("http://", "https://")):
        return HttpHallSource(text)
    return DirectoryHallSource(text)
