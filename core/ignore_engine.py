"""
Ignore Engine - Single source of truth cho logic doc ignore files.

Cung cap:
- build_ignore_patterns(): Tap hop patterns tu VCS + user + gitignore
- build_pathspec(): Tao pathspec.GitIgnoreSpec tu patterns (co cache)
- read_gitignore(): Doc .gitignore, .git/info/exclude, global gitignore (co cache)
- clear_cache(): Xoa tat ca cache

Module nay chi lo viec "doc va compile rules". Viec quyet dinh entry nao
duoc vao tree nam o core.exclusion_policy.
"""

import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pathspec

from core.constants import VCS_DIRS
from core.logging_config import log_debug

# === Cache ===
# Cache cho gitignore patterns: root_path -> (mtime, patterns)
_gitignore_cache: Dict[str, Tuple[float, List[str]]] = {}

# Cache cho GitIgnoreSpec objects: (root_path, patterns) -> (mtime, spec)
_pathspec_cache: Dict[Tuple[str, Tuple[str, ...]], Tuple[float, pathspec.GitIgnoreSpec]] = {}

# Scan workers co the build policy dong thoi
_cache_lock = threading.Lock()


def build_ignore_patterns(
    root_path: Path,
    *,
    excluded_patterns: Optional[Sequence[str]] = None,
    use_gitignore: bool = True,
) -> List[str]:
    """
    Tap hop tat ca ignore patterns tu nhieu nguon.

    Thu tu: VCS > User > Gitignore. Gitignore dung sau de negation
    patterns (!foo) trong .gitignore co the override user patterns.

    Args:
        root_path: Thu muc goc cua project
        excluded_patterns: Danh sach patterns tu user (gitignore format)
        use_gitignore: Co doc .gitignore khong (default: True)

    Returns:
        List cac ignore patterns (gitignore format)
    """
    patterns: List[str] = list(VCS_DIRS)

    if excluded_patterns:
        patterns.extend(excluded_patterns)

    if use_gitignore:
        patterns.extend(read_gitignore(root_path))

    return patterns


def build_pathspec(
    root_path: Path,
    *,
    excluded_patterns: Optional[Sequence[str]] = None,
    use_gitignore: bool = True,
) -> pathspec.GitIgnoreSpec:
    """
    Tao GitIgnoreSpec tu tat ca ignore patterns (co cache).

    Args:
        root_path: Thu muc goc cua project
        excluded_patterns: Danh sach patterns tu user
        use_gitignore: Co doc .gitignore khong

    Returns:
        GitIgnoreSpec de match files/folders (relative posix paths)
    """
    patterns = build_ignore_patterns(
        root_path,
        excluded_patterns=excluded_patterns,
        use_gitignore=use_gitignore,
    )
    return get_cached_pathspec(root_path, patterns)


def get_cached_pathspec(root_path: Path, patterns: List[str]) -> pathspec.GitIgnoreSpec:
    """
    Cache GitIgnoreSpec, invalidate khi .gitignore thay doi hoac patterns thay doi.

    Cache key gom root_path va tuple patterns:
    - Khac patterns -> khac spec
    - Patterns giong nhau + gitignore unchanged -> reuse cache
    """
    cache_key = (str(root_path), tuple(patterns))
    gitignore_mtime = _get_gitignore_mtime(root_path)

    with _cache_lock:
        cached = _pathspec_cache.get(cache_key)
        if cached is not None and cached[0] == gitignore_mtime:
            return cached[1]

    spec = pathspec.GitIgnoreSpec.from_lines(patterns)
    with _cache_lock:
        _pathspec_cache[cache_key] = (gitignore_mtime, spec)
    return spec


def read_gitignore(root_path: Path) -> List[str]:
    """
    Doc .gitignore va .git/info/exclude va global gitignore.

    Su dung cache dua tren .gitignore mtime de tranh doc lai file.

    Sources (theo thu tu):
    1. root_path/.gitignore
    2. root_path/.git/info/exclude
    3. Global gitignore (~/.config/git/ignore hoac ~/.gitignore_global)

    Args:
        root_path: Thu muc goc chua .gitignore

    Returns:
        List cac gitignore patterns (raw lines tu file)
    """
    cache_key = str(root_path)
    current_mtime = _get_gitignore_mtime(root_path)

    with _cache_lock:
        cached = _gitignore_cache.get(cache_key)
        if cached is not None and cached[0] == current_mtime:
            return list(cached[1])

    patterns: List[str] = []

    # 1) Project .gitignore
    patterns.extend(_read_lines(root_path / ".gitignore"))

    # 2) .git/info/exclude
    patterns.extend(_read_lines(root_path / ".git" / "info" / "exclude"))

    # 3) Global gitignore - chi doc file dau tien ton tai
    home = Path.home()
    for candidate in (
        home / ".config" / "git" / "ignore",
        home / ".gitignore_global",
    ):
        if candidate.is_file():
            patterns.extend(_read_lines(candidate))
            break

    with _cache_lock:
        _gitignore_cache[cache_key] = (current_mtime, list(patterns))

    return patterns


def clear_cache() -> None:
    """Xoa tat ca cache (gitignore patterns va spec objects)."""
    with _cache_lock:
        _gitignore_cache.clear()
        _pathspec_cache.clear()


def _read_lines(path: Path) -> List[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except FileNotFoundError:
        return []
    except OSError as e:
        log_debug(f"[IgnoreEngine] Cannot read {path}: {e}")
        return []


def _get_gitignore_mtime(root_path: Path) -> float:
    """Lay modification time cua .gitignore file (0.0 neu khong co)."""
    try:
        return (root_path / ".gitignore").stat().st_mtime
    except OSError:
        return 0.0
