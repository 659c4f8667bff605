"""
Settings Manager - Load settings cua chonkometer.

File: ~/.chonkometer/settings.json

API:
    settings = load_app_settings()  # -> AppSettings
"""

import json
from pathlib import Path
from typing import Optional

from chonkometer.config import paths
from chonkometer.config.app_settings import AppSettings
from chonkometer.core.logging_config import log_warning


def _settings_file(path: Optional[Path]) -> Path:
    return path if path is not None else paths.SETTINGS_FILE


def load_app_settings(path: Optional[Path] = None) -> AppSettings:
    """
    Load settings tu file va tra ve AppSettings typed instance.

    Neu file khong ton tai thi dung defaults; file hong thi log warning
    va dung defaults.

    Args:
        path: Override duong dan settings.json (tests)

    Returns:
        AppSettings instance voi values tu file + defaults
    """
    settings_file = _settings_file(path)
    if not settings_file.exists():
        return AppSettings()

    try:
        saved = json.loads(settings_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        log_warning(f"Ignoring unreadable settings file {settings_file}: {e}")
        return AppSettings()

    if not isinstance(saved, dict):
        log_warning(f"Ignoring settings file {settings_file}: not a JSON object")
        return AppSettings()

    return AppSettings.from_dict(saved)

