"""
Application Paths - Centralized path definitions cho Code Prompt Helper

Module nay dinh nghia tat ca cac duong dan ma engine su dung.
Tap trung o mot noi de tranh hardcode rai rac.

App data duoc luu tai: ~/.code-prompt-helper/ (override bang env CODE_PROMPT_HELPER_HOME)
- logs/         : Log files
- settings.json : EngineSettings
"""

import os
from pathlib import Path


# =============================================================================
# Ten ung dung - Single source of truth cho naming
# =============================================================================
APP_NAME = "code-prompt-helper"

# =============================================================================
# Environment Variables
# =============================================================================
DEBUG_ENV_VAR = "CODE_PROMPT_HELPER_DEBUG"
APP_DIR_ENV_VAR = "CODE_PROMPT_HELPER_HOME"

# Kiem tra debug mode tu environment variable
DEBUG_MODE = os.environ.get(DEBUG_ENV_VAR, "").lower() in ("1", "true", "yes")

# =============================================================================
# Thu muc goc cua ung dung
# =============================================================================
APP_DIR = Path(os.environ.get(APP_DIR_ENV_VAR) or Path.home() / f".{APP_NAME}")

# =============================================================================
# Cac thu muc con va file cau hinh
# =============================================================================
LOG_DIR = APP_DIR / "logs"
SETTINGS_FILE = APP_DIR / "settings.json"
