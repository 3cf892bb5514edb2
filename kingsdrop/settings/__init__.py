"""Persisted user preferences.

The preference object is stored as one JSON string under
:data:`SETTINGS_KEY` in a key-value store.  Reads merge the stored values
over the defaults; anything unreadable falls back to the defaults.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, MutableMapping, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

SETTINGS_KEY = "kinguin_kings_drop_settings"

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal string key-value persistence."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class Preferences(BaseModel):
    """User-facing switches.  Serialized with the userscript's camelCase keys.

    Keys this version does not know are kept and written back unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    auto_click_pay: bool = Field(
        default=False,
        alias="autoClickPay",
        description="Click the pay button instead of only highlighting it.",
    )


class MemoryStore:
    """In-process :class:`KeyValueStore`."""

    def __init__(self, initial: Optional[MutableMapping[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """:class:`KeyValueStore` backed by a JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def _read(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}


class PreferenceStore:
    """Read, update and toggle :class:`Preferences` in a key-value store."""

    def __init__(self, store: KeyValueStore, *, key: str = SETTINGS_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> Preferences:
        raw = self._store.get(self._key)
        if not raw:
            return Preferences()
        try:
            return Preferences.model_validate_json(raw)
        except ValidationError as exc:
            logger.debug("Stored preferences invalid, using defaults: %s", exc)
            return Preferences()

    def get(self, name: str) -> Any:
        self._check_name(name)
        return getattr(self.load(), name)

    def set(self, name: str, value: Any) -> Preferences:
        self._check_name(name)
        stored = self.load().model_dump(by_alias=True)
        stored[Preferences.model_fields[name].alias or name] = value
        updated = Preferences.model_validate(stored)
        self._store.set(self._key, updated.model_dump_json(by_alias=True))
        logger.info("Preference %s set to %r", name, getattr(updated, name))
        return updated

    def toggle(self, name: str) -> bool:
        """Flip a boolean preference and return its new value."""
        current = self.get(name)
        if not isinstance(current, bool):
            raise TypeError(f"Preference {name!r} is not a boolean.")
        return bool(getattr(self.set(name, not current), name))

    def _check_name(self, name: str) -> None:
        if name not in Preferences.model_fields:
            allowed = ", ".join(sorted(Preferences.model_fields))
            raise ValueError(f"Unknown preference {name!r}; expected one of {{{allowed}}}.")


__all__ = [
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "PreferenceStore",
    "Preferences",
    "SETTINGS_KEY",
]
