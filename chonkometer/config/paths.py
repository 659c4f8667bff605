"""
Application Paths - Centralized path definitions for chonkometer

Tat ca duong dan dung trong tool duoc dinh nghia o day,
tranh hardcode rai rac.

App data duoc luu tai: ~/.chonkometer/
- logs/         : Log files
- settings.json : User settings
"""

import os
from pathlib import Path


# =============================================================================
# Ten ung dung - Single source of truth cho naming
# =============================================================================
APP_NAME = "chonkometer"

# =============================================================================
# Thu muc goc cua ung dung (override bang CHONKOMETER_HOME)
# =============================================================================
HOME_ENV_VAR = "CHONKOMETER_HOME"
APP_DIR = Path(os.environ.get(HOME_ENV_VAR) or Path.home() / f".{APP_NAME}")

LOG_DIR = APP_DIR / "logs"
SETTINGS_FILE = APP_DIR / "settings.json"

# =============================================================================
# Environment Variables - debug mode
# =============================================================================
DEBUG_ENV_VAR = "CHONKOMETER_DEBUG"

DEBUG_MODE = os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes")

