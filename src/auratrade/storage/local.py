from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from ..config import settings
from ..types import TradingStrategy

log = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "fyers_access_token"
SETTINGS_KEY = "appSettings"

DEFAULT_PERSONALITY = (
    "You are a helpful and concise financial analyst for a trader.\n"
    "Your name is Aura. You are providing insights in real-time.\n"
    "Keep your answers brief and to the point (2-3 sentences max).\n"
    "Never give financial advice. Do not use markdown."
)


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text() or "{}")
    except (OSError, json.JSONDecodeError) as exc:
        log.warning("Error reading local store %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


class LocalStore:
    """Small JSON file key-value store.

    Behaves like browser local storage: values are JSON serialisable, there
    is no schema versioning, and I/O errors are logged rather than raised.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or settings.store_path)

    def get(self, key: str, default: Any = None) -> Any:
        return _read_file(self.path).get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = _read_file(self.path)
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = _read_file(self.path)
        if key in data:
            del data[key]
            self._write(data)

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self.path.write_text(json.dumps(data, indent=2))
        except OSError as exc:
            log.warning("Error saving local store %s: %s", self.path, exc)


class AppSettings(BaseModel):
    trading_strategy: TradingStrategy = TradingStrategy.INTRADAY
    ai_personality: str = DEFAULT_PERSONALITY


class SettingsStore:
    """Persisted user settings merged over :class:`AppSettings` defaults."""

    def __init__(self, store: LocalStore) -> None:
        self.store = store
        self.settings = self._load()

    def _load(self) -> AppSettings:
        raw = self.store.get(SETTINGS_KEY)
        if not isinstance(raw, dict):
            return AppSettings()
        merged = {**AppSettings().model_dump(), **raw}
        try:
            return AppSettings.model_validate(merged)
        except ValidationError as exc:
            log.warning("Error reading settings, using defaults: %s", exc)
            return AppSettings()

    def update(self, **changes: Any) -> AppSettings:
        self.settings = AppSettings.model_validate({**self.settings.model_dump(), **changes})
        self.store.set(SETTINGS_KEY, self.settings.model_dump(mode="json"))
        return self.settings
