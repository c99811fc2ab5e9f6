"""
Exclusion Policy - Quyet dinh mot filesystem entry co duoc vao tree hay khong.

Contract: include(entry) -> bool
- Pure: chi doc metadata cua entry (name, is_dir), khong I/O
- Total: dinh nghia cho moi entry, khong raise
- Side-effect-free: goi dong thoi tu nhieu worker threads ma khong can lock

DefaultExclusionPolicy loai bo:
1. Entries co ten bat dau bang "."
2. Entries co ten nam trong denylist (build, dist, target, out, .gradle, .idea, node_modules, VCS)
3. Entries bi ignore boi project ignore rules (inject qua IgnoreRules)
4. Entries bi exclude boi source-root config (inject qua SourceRootRules)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence, runtime_checkable

import pathspec

from config.engine_settings import EngineSettings
from core.constants import DEFAULT_EXCLUDED_NAMES, HIDDEN_PREFIX, VCS_DIRS
from core.ignore_engine import build_pathspec
from core.logging_config import log_warning


@dataclass(frozen=True)
class ScanEntry:
    """
    Metadata cua mot entry ma policy duoc phep doc.

    Attributes:
        path: Duong dan tuyet doi cua entry
        is_dir: True neu la directory
    """

    path: Path
    is_dir: bool

    @property
    def name(self) -> str:
        return self.path.name


@runtime_checkable
class ExclusionPolicy(Protocol):
    """Predicate quyet dinh entry co tham gia tree hay khong."""

    def include(self, entry: ScanEntry) -> bool: ...


@runtime_checkable
class IgnoreRules(Protocol):
    """Collaborator: project-level ignore rules (vd: .gitignore)."""

    def is_ignored(self, entry: ScanEntry) -> bool: ...


@runtime_checkable
class SourceRootRules(Protocol):
    """Collaborator: source-root configuration (excluded folders)."""

    def is_excluded(self, entry: ScanEntry) -> bool: ...


class DefaultExclusionPolicy:
    """
    Policy mac dinh: hidden + denylist + ignore rules + source-root rules.

    Loi tu collaborator duoc log va entry bi coi la excluded,
    de policy luon total.
    """

    def __init__(
        self,
        excluded_names: Optional[Iterable[str]] = None,
        ignore_rules: Optional[IgnoreRules] = None,
        source_root_rules: Optional[SourceRootRules] = None,
    ):
        names = DEFAULT_EXCLUDED_NAMES if excluded_names is None else excluded_names
        # VCS metadata luon bi exclude, ke ca khi user override denylist
        self._excluded_names = frozenset(names) | frozenset(VCS_DIRS)
        self._ignore_rules = ignore_rules
        self._source_root_rules = source_root_rules

    @property
    def excluded_names(self) -> frozenset[str]:
        return self._excluded_names

    def include(self, entry: ScanEntry) -> bool:
        name = entry.name
        if name.startswith(HIDDEN_PREFIX):
            return False
        if name in self._excluded_names:
            return False

        try:
            if self._ignore_rules is not None and self._ignore_rules.is_ignored(entry):
                return False
            if self._source_root_rules is not None and self._source_root_rules.is_excluded(
                entry
            ):
                return False
        except Exception as e:
            log_warning(f"[ExclusionPolicy] Error checking {entry.path}: {e}")
            return False

        return True


class GitignoreRules:
    """
    IgnoreRules dua tren pathspec, compile MOT LAN cho moi root.

    Entry duoc match bang relative posix path tu root chua no,
    directories co trailing "/" (gitignore semantics).
    Entry nam ngoai moi root khong bao gio bi ignore.
    """

    def __init__(
        self,
        roots: Sequence[Path],
        excluded_patterns: Optional[Sequence[str]] = None,
        use_gitignore: bool = True,
    ):
        self._specs: list[tuple[Path, pathspec.GitIgnoreSpec]] = []
        for root in roots:
            root_path = Path(root).resolve()
            spec = build_pathspec(
                root_path,
                excluded_patterns=excluded_patterns,
                use_gitignore=use_gitignore,
            )
            self._specs.append((root_path, spec))
        # Root sau nhat (sau nhat = nhieu parts nhat) duoc uu tien khi roots long nhau
        self._specs.sort(key=lambda item: len(item[0].parts), reverse=True)

    def is_ignored(self, entry: ScanEntry) -> bool:
        for root, spec in self._specs:
            try:
                rel = entry.path.relative_to(root)
            except ValueError:
                continue
            rel_str = rel.as_posix()
            if rel_str == ".":
                return False
            if entry.is_dir:
                rel_str += "/"
            return spec.match_file(rel_str)
        return False


class ExcludedDirsRules:
    """SourceRootRules: exclude cac thu muc da cau hinh va moi thu ben duoi."""

    def __init__(self, excluded_dirs: Iterable[Path]):
        self._excluded = frozenset(Path(d).resolve() for d in excluded_dirs)

    def is_excluded(self, entry: ScanEntry) -> bool:
        if not self._excluded:
            return False
        if entry.path in self._excluded:
            return True
        return any(parent in self._excluded for parent in entry.path.parents)


def build_default_policy(
    roots: Sequence[Path],
    settings: Optional[EngineSettings] = None,
) -> DefaultExclusionPolicy:
    """
    Compose DefaultExclusionPolicy tu EngineSettings cho mot tap roots.

    - excluded_names -> denylist
    - excluded_patterns + use_gitignore -> GitignoreRules
    - excluded_source_dirs (relative toi moi root) -> ExcludedDirsRules

    Args:
        roots: Cac thu muc goc se duoc scan
        settings: EngineSettings (None = defaults)

    Returns:
        DefaultExclusionPolicy san sang dung cho FileScanner
    """
    settings = settings or EngineSettings()
    resolved_roots = [Path(r).resolve() for r in roots]

    ignore_rules = GitignoreRules(
        resolved_roots,
        excluded_patterns=settings.get_excluded_patterns_list(),
        use_gitignore=settings.use_gitignore,
    )

    source_root_rules: Optional[ExcludedDirsRules] = None
    if settings.excluded_source_dirs:
        source_root_rules = ExcludedDirsRules(
            root / rel for root in resolved_roots for rel in settings.excluded_source_dirs
        )

    return DefaultExclusionPolicy(
        excluded_names=settings.get_excluded_names_list(),
        ignore_rules=ignore_rules,
        source_root_rules=source_root_rules,
    )
