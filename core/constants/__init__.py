from core.constants.file_patterns import (
    BUILD_OUTPUT_NAMES,
    DEFAULT_EXCLUDED_NAMES,
    HIDDEN_PREFIX,
    IDE_METADATA_NAMES,
    VCS_DIRS,
)

__all__ = [
    "BUILD_OUTPUT_NAMES",
    "DEFAULT_EXCLUDED_NAMES",
    "HIDDEN_PREFIX",
    "IDE_METADATA_NAMES",
    "VCS_DIRS",
]
