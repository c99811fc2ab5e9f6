"""
Config Package - Chua cac constants va cau hinh cua engine

Bao gom:
- paths: App dir, log dir, settings file
- engine_settings: EngineSettings dataclass
"""

from config.engine_settings import DEFAULT_MAX_FILE_BYTES, EngineSettings

__all__ = [
    "DEFAULT_MAX_FILE_BYTES",
    "EngineSettings",
]
