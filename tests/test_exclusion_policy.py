"""
Tests cho core.exclusion_policy.

- DefaultExclusionPolicy: hidden, denylist, collaborators, totality
- GitignoreRules: match relative path theo root, directories
- ExcludedDirsRules: exclude thu muc va moi thu ben duoi
- build_default_policy: compose tu EngineSettings
"""

from pathlib import Path

import pytest

from config.engine_settings import EngineSettings
from core.exclusion_policy import (
    DefaultExclusionPolicy,
    ExcludedDirsRules,
    ExclusionPolicy,
    GitignoreRules,
    ScanEntry,
    build_default_policy,
)


def _file(path: Path) -> ScanEntry:
    return ScanEntry(path=path, is_dir=False)


def _dir(path: Path) -> ScanEntry:
    return ScanEntry(path=path, is_dir=True)


class _IgnoreAll:
    def is_ignored(self, entry: ScanEntry) -> bool:
        return True


class _Exploding:
    def is_ignored(self, entry: ScanEntry) -> bool:
        raise RuntimeError("index not ready")

    def is_excluded(self, entry: ScanEntry) -> bool:
        raise RuntimeError("index not ready")


class TestDefaultExclusionPolicy:
    """Test suite cho DefaultExclusionPolicy."""

    @pytest.mark.parametrize(
        "name", ["build", "dist", "target", "out", ".gradle", ".idea", "node_modules"]
    )
    def test_denylist_bi_exclude(self, tmp_path: Path, name: str):
        policy = DefaultExclusionPolicy()
        assert policy.include(_dir(tmp_path / name)) is False

    @pytest.mark.parametrize("name", [".git", ".env", ".hidden_dir"])
    def test_hidden_bi_exclude(self, tmp_path: Path, name: str):
        policy = DefaultExclusionPolicy()
        assert policy.include(_dir(tmp_path / name)) is False
        assert policy.include(_file(tmp_path / name)) is False

    def test_file_binh_thuong_duoc_include(self, tmp_path: Path):
        policy = DefaultExclusionPolicy()
        assert policy.include(_file(tmp_path / "main.py")) is True
        assert policy.include(_dir(tmp_path / "src")) is True

    def test_denylist_la_exact_name(self, tmp_path: Path):
        """'builder' va 'Build' khong bi exclude boi 'build'."""
        policy = DefaultExclusionPolicy()
        assert policy.include(_dir(tmp_path / "builder")) is True
        assert policy.include(_dir(tmp_path / "Build")) is True

    def test_custom_denylist_van_giu_vcs(self, tmp_path: Path):
        policy = DefaultExclusionPolicy(excluded_names=["vendor"])
        assert policy.include(_dir(tmp_path / "vendor")) is False
        assert policy.include(_dir(tmp_path / "build")) is True
        assert ".git" in policy.excluded_names

    def test_ignore_rules_duoc_ton_trong(self, tmp_path: Path):
        policy = DefaultExclusionPolicy(ignore_rules=_IgnoreAll())
        assert policy.include(_file(tmp_path / "main.py")) is False

    def test_collaborator_raise_thi_exclude(self, tmp_path: Path):
        """Policy total: exception tu collaborator -> excluded, khong propagate."""
        policy = DefaultExclusionPolicy(ignore_rules=_Exploding())
        assert policy.include(_file(tmp_path / "main.py")) is False

        policy = DefaultExclusionPolicy(source_root_rules=_Exploding())
        assert policy.include(_file(tmp_path / "main.py")) is False

    def test_implement_protocol(self):
        assert isinstance(DefaultExclusionPolicy(), ExclusionPolicy)

    def test_khong_doc_filesystem(self, tmp_path: Path):
        """Entry khong ton tai van duoc phan loai chi tu metadata."""
        policy = DefaultExclusionPolicy()
        assert policy.include(_file(tmp_path / "missing" / "ghost.txt")) is True


class TestGitignoreRules:
    """Test suite cho GitignoreRules."""

    def test_match_file_pattern(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("*.log\n")
        rules = GitignoreRules([tmp_path])

        assert rules.is_ignored(_file(tmp_path / "debug.log")) is True
        assert rules.is_ignored(_file(tmp_path / "src" / "trace.log")) is True
        assert rules.is_ignored(_file(tmp_path / "main.py")) is False

    def test_directory_pattern_chi_match_directory(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("cache/\n")
        rules = GitignoreRules([tmp_path])

        assert rules.is_ignored(_dir(tmp_path / "cache")) is True
        assert rules.is_ignored(_file(tmp_path / "cache")) is False

    def test_user_patterns(self, tmp_path: Path):
        rules = GitignoreRules([tmp_path], excluded_patterns=["*.tmp"], use_gitignore=False)
        assert rules.is_ignored(_file(tmp_path / "x.tmp")) is True

    def test_use_gitignore_false(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("*.log\n")
        rules = GitignoreRules([tmp_path], use_gitignore=False)
        assert rules.is_ignored(_file(tmp_path / "debug.log")) is False

    def test_entry_ngoai_root_khong_bi_ignore(self, tmp_path: Path):
        root = tmp_path / "project"
        root.mkdir()
        (root / ".gitignore").write_text("*\n")
        rules = GitignoreRules([root])

        assert rules.is_ignored(_file(tmp_path / "other" / "a.txt")) is False

    def test_moi_root_dung_gitignore_rieng(self, tmp_path: Path):
        a = tmp_path / "a"
        b = tmp_path / "b"
        a.mkdir()
        b.mkdir()
        (a / ".gitignore").write_text("*.txt\n")
        rules = GitignoreRules([a, b])

        assert rules.is_ignored(_file(a / "x.txt")) is True
        assert rules.is_ignored(_file(b / "x.txt")) is False


class TestExcludedDirsRules:
    """Test suite cho ExcludedDirsRules."""

    def test_exclude_dir_va_descendants(self, tmp_path: Path):
        rules = ExcludedDirsRules([tmp_path / "generated"])

        assert rules.is_excluded(_dir(tmp_path / "generated")) is True
        assert rules.is_excluded(_file(tmp_path / "generated" / "deep" / "x.py")) is True
        assert rules.is_excluded(_dir(tmp_path / "src")) is False

    def test_rong_thi_khong_exclude(self, tmp_path: Path):
        assert ExcludedDirsRules([]).is_excluded(_file(tmp_path / "a.py")) is False


class TestBuildDefaultPolicy:
    """Test suite cho build_default_policy."""

    def test_defaults(self, tmp_path: Path):
        policy = build_default_policy([tmp_path])
        assert policy.include(_dir(tmp_path / "node_modules")) is False
        assert policy.include(_file(tmp_path / "README.md")) is True

    def test_settings_duoc_ap_dung(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("secret.txt\n")
        settings = EngineSettings(
            excluded_names="vendor",
            excluded_patterns="*.bak",
            excluded_source_dirs=["generated"],
        )
        policy = build_default_policy([tmp_path], settings)

        assert policy.include(_dir(tmp_path / "vendor")) is False
        assert policy.include(_dir(tmp_path / "build")) is True
        assert policy.include(_file(tmp_path / "old.bak")) is False
        assert policy.include(_file(tmp_path / "secret.txt")) is False
        assert policy.include(_file(tmp_path / "generated" / "a.py")) is False
        assert policy.include(_file(tmp_path / "src" / "a.py")) is True
