from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class TokenStore:
    """Keeps the bearer token between calls, optionally persisted to a JSON file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = Path(path) if path is not None else None
        self._token: Optional[str] = None
        if self._path is not None and self._path.exists():
            try:
                self._token = json.loads(self._path.read_text(encoding="utf-8")).get("token")
            except (OSError, ValueError):
                logger.warning("token store unreadable path=%s", self._path)

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token
        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def clear(self) -> None:
        self._token = None
        if self._path is not None and self._path.exists():
            self._path.unlink()
