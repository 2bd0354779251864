from __future__ import annotations

import json
import os
from typing import Any

from .logger import get_logger

_logger = get_logger("settings")


class SettingsManager:
    """JSON-backed tunables for the conversion engine.

    Values missing from the file fall back to `DEFAULTS`. Typed accessors
    reject nonsensical values (non-positive sizes, wrong types) and return
    the default instead so a hand-edited file cannot wedge the engine.
    """

    DEFAULTS: dict[str, Any] = {
        "encode_chunk_size": 64 * 1024,
        "encode_progress_stride": 20,
        "sample_chunk_size": 512 * 1024,
        "sample_progress_stride": 4,
        "sample_seed": None,
    }

    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except Exception as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except Exception as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    def _positive_int(self, key: str) -> int:
        val = self.get(key)
        if isinstance(val, int) and not isinstance(val, bool) and val > 0:
            return val
        _logger.warning("invalid %s=%r, using default", key, val)
        return int(self.DEFAULTS[key])

    @property
    def encode_chunk_size(self) -> int:
        return self._positive_int("encode_chunk_size")

    @property
    def encode_progress_stride(self) -> int:
        return self._positive_int("encode_progress_stride")

    @property
    def sample_chunk_size(self) -> int:
        return self._positive_int("sample_chunk_size")

    @property
    def sample_progress_stride(self) -> int:
        return self._positive_int("sample_progress_stride")

    @property
    def sample_seed(self) -> int | None:
        val = self.get("sample_seed")
        if val is None or (isinstance(val, int) and not isinstance(val, bool) and val >= 0):
            return val
        _logger.warning("invalid sample_seed=%r, ignoring", val)
        return None
