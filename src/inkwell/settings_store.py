from __future__ import annotations

import json
from pathlib import Path
from typing import Any, cast

from cryptography.fernet import Fernet, InvalidToken

from .config import InkwellConfig
from .errors import ConfigurationError


def _fernet(key_str: str) -> Fernet:
    try:
        return Fernet(key_str.encode("utf-8"))
    except ValueError as e:
        raise ConfigurationError("Settings encryption key is not a valid Fernet key.") from e


class SettingsStore:
    """
    Key-value settings persisted as one JSON object at `path`.

    When `fernet_key` is set the file holds Fernet-encrypted JSON bytes,
    which keeps provider API keys off disk in clear text.
    """

    def __init__(self, path: str | Path, fernet_key: str | None = None):
        self.path = Path(path)
        self.fernet_key = fernet_key

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        raw = self.path.read_bytes()
        if self.fernet_key:
            try:
                raw = _fernet(self.fernet_key).decrypt(raw)
            except InvalidToken as e:
                raise ConfigurationError("Failed to decrypt settings (wrong key or corrupted file).") from e
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Settings file {self.path} is not valid JSON.") from e
        if not isinstance(payload, dict):
            raise ConfigurationError("Settings payload must be a JSON object.")
        return cast(dict[str, Any], payload)

    def save(self, settings: dict[str, Any]) -> None:
        raw = json.dumps(settings, indent=2).encode("utf-8")
        if self.fernet_key:
            raw = _fernet(self.fernet_key).encrypt(raw)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(raw)


def load_config(base: InkwellConfig | None = None) -> InkwellConfig:
    """Environment defaults overlaid with whatever the settings file holds."""
    cfg = base or InkwellConfig()
    store = SettingsStore(cfg.settings_path, cfg.settings_fernet_key)
    return cfg.with_persisted(store.load())


def save_config(cfg: InkwellConfig) -> None:
    SettingsStore(cfg.settings_path, cfg.settings_fernet_key).save(cfg.persisted())
