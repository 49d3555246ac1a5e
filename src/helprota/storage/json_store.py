"""Whole-document JSON persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonDocumentStore:
    """Load and save named JSON documents under a single data directory.

    Every save rewrites the full document; there are no partial writes.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def document_path(self, name: str) -> Path:
        return self._path / f"{name}.json"

    def load(self, name: str, fallback: Any) -> Any:
        """Return the stored document, or ``fallback`` if it is missing or unreadable."""

        target = self.document_path(name)
        if not target.exists():
            return fallback
        try:
            return json.loads(target.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.error(
                "Failed to load document",
                extra={"document": name, "path": str(target), "error": str(exc)},
            )
            return fallback

    def save(self, name: str, document: Any) -> None:
        """Overwrite the stored document. Errors propagate to the caller."""

        target = self.document_path(name)
        payload = json.dumps(document, indent=2, ensure_ascii=False)
        target.write_text(payload, encoding="utf-8")
        logger.debug("Saved document", extra={"document": name, "path": str(target)})


__all__ = ["JsonDocumentStore"]
