"""
Local Session Storage

A small JSON key/value file standing in for per-browser local storage.
Only the demo session is ever written, as a token pair under one key.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from cardiorisk.utils import get_logger

logger = get_logger(__name__)


class SessionStorage:
    """Key/value JSON document at ``path``; the file is created on first write."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable session storage {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> Optional[Any]:
        return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)
