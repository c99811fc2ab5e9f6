"""
Settings Manager - Quan ly load/save EngineSettings.

File mac dinh: ~/.code-prompt-helper/settings.json
(override thu muc bang CODE_PROMPT_HELPER_HOME)

API:
    settings = load_app_settings()  # -> EngineSettings
    save_app_settings(settings)
    update_app_setting(max_workers=8)

Moi function nhan `path` optional de CLI/tests dung file khac.
"""

import json
import threading
from pathlib import Path
from typing import Any, Optional

from config.engine_settings import EngineSettings
from config.paths import SETTINGS_FILE
from core.logging_config import log_error, log_warning

# Thread-safe lock de tranh race condition khi save settings
_settings_lock = threading.Lock()


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        log_warning(f"[Settings] Could not read {path}: {e}")
        return {}
    if not isinstance(data, dict):
        log_warning(f"[Settings] Ignoring {path}: top-level value is not an object")
        return {}
    return data


def _load_app_settings_unlocked(path: Path) -> EngineSettings:
    """
    Load settings tu file KHONG co lock.

    Chi duoc goi tu load_app_settings() hoac tu code da acquire _settings_lock.
    """
    return EngineSettings.from_dict(_read_settings_file(path))


def _save_app_settings_unlocked(settings: EngineSettings, path: Path) -> bool:
    """
    Save EngineSettings ra file KHONG co lock.

    Merge voi existing data de bao toan extra keys.

    Returns:
        True neu save thanh cong
    """
    existing_data = _read_settings_file(path)
    updated = {**existing_data, **settings.to_dict()}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(updated, indent=2), encoding="utf-8")
    except OSError as e:
        log_error(f"[Settings] Could not save {path}", e)
        return False
    return True


def load_app_settings(path: Optional[Path] = None) -> EngineSettings:
    """
    Load settings tu file va tra ve EngineSettings.

    Read-only operation, khong can lock vi chi doc file.
    Neu file khong ton tai hoac loi, tra ve defaults.

    Args:
        path: File settings (default: SETTINGS_FILE)

    Returns:
        EngineSettings voi values tu file + defaults
    """
    return _load_app_settings_unlocked(Path(path) if path else SETTINGS_FILE)


def save_app_settings(settings: EngineSettings, path: Optional[Path] = None) -> bool:
    """
    Save EngineSettings ra file (thread-safe).

    Returns:
        True neu save thanh cong
    """
    with _settings_lock:
        return _save_app_settings_unlocked(settings, Path(path) if path else SETTINGS_FILE)


def update_app_setting(path: Optional[Path] = None, **kwargs: Any) -> bool:
    """
    Update mot hoac nhieu settings fields cung luc (thread-safe, atomic).

    Toan bo read-modify-write duoc bao ve boi _settings_lock
    de tranh race condition khi 2 threads update dong thoi.

    Args:
        path: File settings (default: SETTINGS_FILE)
        **kwargs: Field names va values can update (vd: max_workers=8)

    Returns:
        True neu save thanh cong

    Raises:
        TypeError: Neu key khong phai la EngineSettings field
    """
    # Validate fields truoc khi acquire lock de fail-fast
    valid_fields = set(EngineSettings.__dataclass_fields__)
    for key in kwargs:
        if key not in valid_fields:
            raise TypeError(
                f"'{key}' is not a valid EngineSettings field. "
                f"Valid fields: {sorted(valid_fields)}"
            )

    settings_path = Path(path) if path else SETTINGS_FILE
    with _settings_lock:
        current = _load_app_settings_unlocked(settings_path)
        # Di qua from_dict de gia tri moi cung duoc validate
        settings = EngineSettings.from_dict({**current.to_dict(), **kwargs})
        return _save_app_settings_unlocked(settings, settings_path)
