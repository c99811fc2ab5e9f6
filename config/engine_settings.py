"""
EngineSettings - Typed settings dataclass cho aggregation engine.

Thay the Dict[str, Any] bang dataclass co type hints, validation va default values.
Tat ca settings duoc truy cap qua typed fields thay vi string keys.

Modules:
- EngineSettings: Dataclass chua toan bo engine settings
- from_dict(): Tao EngineSettings tu dict (doc tu settings.json)
- to_dict(): Chuyen doi EngineSettings thanh dict de luu xuong file

Su dung:
    settings = load_app_settings()
    policy = build_default_policy(roots, settings)
"""

import typing
from dataclasses import dataclass, field, fields
from typing import Any

# Default size limit cho moi file khi doc noi dung (10 MiB)
DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024

# === Default values cho settings ===
_DEFAULT_EXCLUDED_NAMES = "build\ndist\ntarget\nout\n.gradle\n.idea\nnode_modules"


@dataclass
class EngineSettings:
    """
    Typed settings cho engine.

    Moi field tuong ung voi mot key trong settings.json.
    Default values duoc su dung khi settings.json chua co key tuong ung.
    """

    # --- Tree Settings ---
    # Ten file/folder bi loai khoi tree (exact name, separated by newline)
    excluded_names: str = field(default=_DEFAULT_EXCLUDED_NAMES)
    # User patterns theo gitignore format (separated by newline)
    excluded_patterns: str = ""
    # Co respect .gitignore hay khong
    use_gitignore: bool = True
    # Thu muc bi exclude theo source-root config (relative toi moi root)
    excluded_source_dirs: list[str] = field(default_factory=list)

    # --- Aggregation Settings ---
    # Kich thuoc toi da doc tu moi file (bytes), phan con lai bi truncate
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    # So worker threads cho read+estimate
    max_workers: int = 4
    # Co chen header "--- File: ... ---" truoc moi file hay khong
    include_header: bool = True
    # Co dung relative paths trong header hay khong
    use_relative_paths: bool = False

    # --- Token Estimation ---
    # "default" (word split) hoac "tiktoken"
    estimator: str = "default"
    # Encoding cho TiktokenEstimator
    tiktoken_encoding: str = "o200k_base"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EngineSettings":
        """
        Tao EngineSettings tu dict, chi lay cac keys trung voi field names.

        Bao gom type validation: neu value co type khong khop voi
        field declaration, se bo qua va dung default thay the.

        Args:
            data: Dict settings (thuong tu settings.json)

        Returns:
            EngineSettings instance voi values tu dict, fallback ve defaults
        """
        field_types: dict[str, Any] = typing.get_type_hints(cls)

        filtered: dict[str, Any] = {}
        for key, value in data.items():
            if key not in field_types:
                continue

            expected_type = field_types[key]

            # Strict type check: reject bool when expecting int
            # (isinstance(True, int) == True in Python)
            if expected_type is int and isinstance(value, bool):
                continue

            origin = typing.get_origin(expected_type)
            check_type = origin if origin is not None else expected_type

            if not isinstance(value, check_type):
                continue

            # list[str]: bo qua neu co phan tu khong phai string
            if check_type is list and not all(isinstance(v, str) for v in value):
                continue

            filtered[key] = value

        settings = cls(**filtered)
        if settings.max_file_bytes <= 0:
            settings.max_file_bytes = DEFAULT_MAX_FILE_BYTES
        if settings.max_workers <= 0:
            settings.max_workers = 1
        return settings

    def to_dict(self) -> dict[str, Any]:
        """
        Chuyen doi EngineSettings thanh dict de luu xuong file.

        Returns:
            Dict voi toan bo settings
        """
        return {
            f.name: list(getattr(self, f.name))
            if isinstance(getattr(self, f.name), list)
            else getattr(self, f.name)
            for f in fields(self)
        }

    def get_excluded_names_list(self) -> list[str]:
        """
        Parse excluded_names thanh list ten.

        Loai bo dong trong va comments (bat dau bang #).
        """
        return _split_lines(self.excluded_names)

    def get_excluded_patterns_list(self) -> list[str]:
        """
        Parse excluded_patterns string thanh list cac gitignore patterns.

        Returns:
            List patterns da normalize
        """
        return _split_lines(self.excluded_patterns)


def _split_lines(text: str) -> list[str]:
    return [
        line.strip()
        for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
