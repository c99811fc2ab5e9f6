"""
Tests cho EngineSettings dataclass va typed settings API.

Coverage:
- EngineSettings.from_dict() voi day du fields, partial fields, extra keys, sai type
- EngineSettings.to_dict() roundtrip
- get_excluded_names_list() / get_excluded_patterns_list() parsing
- load_app_settings() / save_app_settings() / update_app_setting()
"""

import json
from unittest.mock import patch

import pytest

from config.engine_settings import DEFAULT_MAX_FILE_BYTES, EngineSettings
from services.settings_manager import (
    load_app_settings,
    save_app_settings,
    update_app_setting,
)

# ============================================================
# EngineSettings dataclass tests
# ============================================================


class TestEngineSettings:
    """Test EngineSettings dataclass creation va methods."""

    def test_default_values(self):
        settings = EngineSettings()
        assert settings.use_gitignore is True
        assert settings.include_header is True
        assert settings.use_relative_paths is False
        assert settings.max_file_bytes == DEFAULT_MAX_FILE_BYTES == 10 * 1024 * 1024
        assert settings.estimator == "default"
        assert settings.excluded_source_dirs == []
        assert settings.get_excluded_names_list() == [
            "build",
            "dist",
            "target",
            "out",
            ".gradle",
            ".idea",
            "node_modules",
        ]

    def test_from_dict_full(self):
        data = {
            "excluded_names": "vendor\nbin",
            "excluded_patterns": "*.log",
            "use_gitignore": False,
            "excluded_source_dirs": ["generated"],
            "max_file_bytes": 1024,
            "max_workers": 8,
            "include_header": False,
            "use_relative_paths": True,
            "estimator": "tiktoken",
            "tiktoken_encoding": "cl100k_base",
        }
        settings = EngineSettings.from_dict(data)
        assert settings.to_dict() == data

    def test_from_dict_partial(self):
        settings = EngineSettings.from_dict({"max_workers": 2})
        assert settings.max_workers == 2
        assert settings.use_gitignore is True

    def test_from_dict_extra_keys_ignored(self):
        settings = EngineSettings.from_dict({"unknown_key": 1, "model_id": "gpt-4"})
        assert settings == EngineSettings()

    def test_from_dict_sai_type_dung_default(self):
        settings = EngineSettings.from_dict(
            {
                "max_workers": "8",
                "use_gitignore": "yes",
                "max_file_bytes": True,
                "excluded_source_dirs": ["ok", 3],
            }
        )
        assert settings.max_workers == 4
        assert settings.use_gitignore is True
        assert settings.max_file_bytes == DEFAULT_MAX_FILE_BYTES
        assert settings.excluded_source_dirs == []

    def test_from_dict_clamp_gia_tri_khong_hop_le(self):
        settings = EngineSettings.from_dict({"max_file_bytes": 0, "max_workers": -3})
        assert settings.max_file_bytes == DEFAULT_MAX_FILE_BYTES
        assert settings.max_workers == 1

    def test_to_dict_copy_list(self):
        settings = EngineSettings(excluded_source_dirs=["a"])
        data = settings.to_dict()
        data["excluded_source_dirs"].append("b")
        assert settings.excluded_source_dirs == ["a"]

    def test_get_excluded_patterns_list(self):
        settings = EngineSettings(excluded_patterns="*.log\n\n# comment\n  temp/  \n")
        assert settings.get_excluded_patterns_list() == ["*.log", "temp/"]

    def test_get_excluded_patterns_list_empty(self):
        assert EngineSettings().get_excluded_patterns_list() == []


# ============================================================
# Settings manager tests
# ============================================================


class TestSettingsManager:
    """load/save/update voi file tam."""

    def test_load_app_settings_no_file(self, tmp_path):
        with patch("services.settings_manager.SETTINGS_FILE", tmp_path / "missing.json"):
            assert load_app_settings() == EngineSettings()

    def test_load_app_settings_with_file(self, tmp_path):
        settings_file = tmp_path / "settings.json"
        settings_file.write_text(json.dumps({"max_workers": 6, "include_header": False}))

        settings = load_app_settings(settings_file)

        assert settings.max_workers == 6
        assert settings.include_header is False

    def test_load_app_settings_invalid_json(self, tmp_path):
        settings_file = tmp_path / "settings.json"
        settings_file.write_text("{not json")

        assert load_app_settings(settings_file) == EngineSettings()

    def test_load_app_settings_khong_phai_object(self, tmp_path):
        settings_file = tmp_path / "settings.json"
        settings_file.write_text("[1, 2]")

        assert load_app_settings(settings_file) == EngineSettings()

    def test_save_app_settings(self, tmp_path):
        settings_file = tmp_path / "nested" / "settings.json"

        assert save_app_settings(EngineSettings(max_workers=3), settings_file) is True

        saved = json.loads(settings_file.read_text())
        assert saved["max_workers"] == 3

    def test_save_preserves_extra_keys(self, tmp_path):
        settings_file = tmp_path / "settings.json"
        settings_file.write_text(json.dumps({"window_width": 800}))

        save_app_settings(EngineSettings(), settings_file)

        saved = json.loads(settings_file.read_text())
        assert saved["window_width"] == 800
        assert saved["use_gitignore"] is True

    def test_save_dung_default_path(self, tmp_path):
        settings_file = tmp_path / "settings.json"
        with patch("services.settings_manager.SETTINGS_FILE", settings_file):
            save_app_settings(EngineSettings(estimator="tiktoken"))
            assert load_app_settings().estimator == "tiktoken"

    def test_update_app_setting_multiple(self, tmp_path):
        settings_file = tmp_path / "settings.json"
        save_app_settings(EngineSettings(), settings_file)

        assert update_app_setting(settings_file, max_workers=2, use_gitignore=False) is True

        settings = load_app_settings(settings_file)
        assert settings.max_workers == 2
        assert settings.use_gitignore is False

    def test_update_app_setting_invalid_field(self, tmp_path):
        with pytest.raises(TypeError, match="not a valid EngineSettings field"):
            update_app_setting(tmp_path / "settings.json", model_id="gpt-4")
