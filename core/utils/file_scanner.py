"""
File Scanner - Build checkable file tree voi exclusion policy va cancellation.

Features:
- Depth-first: list children, filter bang ExclusionPolicy, sort, recurse vao directories
- Cancellation qua CancelToken: check tai moi directory va truoc moi child
- Directory khong list duoc van co mat trong tree (rong), scan khong abort
- Throttled progress updates (200ms interval)

Khong follow symlink toi directory, nen tree luon la cay (khong co cycle).
"""

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from core.cancellation import CancelToken, check_cancelled
from core.errors import ListingFailure
from core.exclusion_policy import ExclusionPolicy, ScanEntry
from core.logging_config import log_debug, log_info, log_warning
from core.utils.file_utils import TreeItem, child_sort_key

SENTINEL_LABEL = "Project Content"


@dataclass
class ScanProgress:
    """
    Progress information during directory scanning.

    Attributes:
        directories: So directories da scan
        files: So files da tim thay
        current_path: Path dang duoc scan
    """

    directories: int = 0
    files: int = 0
    current_path: str = ""


# Type alias cho progress callback
ProgressCallback = Callable[[ScanProgress], None]


class FileScanner:
    """
    Tree builder voi exclusion policy, cancellation va progress callbacks.

    Moi instance giu listing_failures cua lan scan gan nhat.
    """

    # 200ms giua cac progress updates
    THROTTLE_INTERVAL_MS = 200

    def __init__(self, policy: ExclusionPolicy):
        self.policy = policy
        self.listing_failures: List[ListingFailure] = []
        self._progress = ScanProgress()
        self._last_progress_time: float = 0

    def scan(
        self,
        roots: Sequence[Union[str, Path]],
        cancel_token: Optional[CancelToken] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> TreeItem:
        """
        Scan cac roots va tra ve sentinel root.

        Children cua sentinel la cac top-level entries duoc include cua
        moi root, theo thu tu roots truyen vao. Mot root la file thi
        chinh file do la top-level entry (neu policy cho phep).

        Args:
            roots: Cac thu muc (hoac files) goc
            cancel_token: Token de huy scan
            progress_callback: Callback duoc goi khi co progress update

        Returns:
            TreeItem sentinel chua toan bo cay

        Raises:
            Cancelled: Neu cancel_token bi cancel trong luc scan
        """
        resolved = [Path(r).resolve() for r in roots]

        self.listing_failures = []
        self._progress = ScanProgress()
        self._last_progress_time = 0

        if len(resolved) == 1:
            # Root la file -> sentinel la thu muc chua no, identity khong trung voi child
            anchor = resolved[0] if not resolved[0].is_file() else resolved[0].parent
            sentinel = TreeItem(
                label=anchor.name or str(anchor),
                path=str(anchor),
                is_dir=True,
            )
        else:
            sentinel = TreeItem(label=SENTINEL_LABEL, path="", is_dir=True)

        for root in resolved:
            check_cancelled(cancel_token)
            if root.is_dir():
                sentinel.children.extend(
                    self._scan_children(root, cancel_token, progress_callback)
                )
            elif root.is_file():
                entry = ScanEntry(path=root, is_dir=False)
                if self.policy.include(entry):
                    self._progress.files += 1
                    sentinel.children.append(
                        TreeItem(label=root.name, path=str(root), is_dir=False)
                    )
            else:
                self._record_failure(str(root), "Root does not exist")

        self._emit_progress(progress_callback, force=True)
        log_info(
            f"[FileScanner] Scanned {self._progress.directories} directories, "
            f"{self._progress.files} files"
        )
        return sentinel

    def _scan_children(
        self,
        directory: Path,
        cancel_token: Optional[CancelToken],
        progress_callback: Optional[ProgressCallback],
    ) -> List[TreeItem]:
        """List, filter, sort va recurse vao children cua mot directory."""
        check_cancelled(cancel_token)

        self._progress.directories += 1
        self._progress.current_path = str(directory)
        self._emit_progress(progress_callback)

        entries = self._list_directory(directory)
        if entries is None:
            return []

        included = [e for e in entries if self.policy.include(e)]
        included.sort(key=lambda e: child_sort_key(e.name, e.is_dir))

        children: List[TreeItem] = []
        for entry in included:
            check_cancelled(cancel_token)

            child = TreeItem(label=entry.name, path=str(entry.path), is_dir=entry.is_dir)
            if entry.is_dir:
                child.children = self._scan_children(
                    entry.path, cancel_token, progress_callback
                )
            else:
                self._progress.files += 1
            children.append(child)

        return children

    def _list_directory(self, directory: Path) -> Optional[List[ScanEntry]]:
        """
        Liet ke entries cua directory.

        Returns:
            List ScanEntry, hoac None neu listing that bai (da ghi ListingFailure)
        """
        entries: List[ScanEntry] = []
        try:
            with os.scandir(directory) as it:
                for dir_entry in it:
                    kind = _classify(dir_entry)
                    if kind is None:
                        continue
                    entries.append(
                        ScanEntry(path=directory / dir_entry.name, is_dir=kind)
                    )
        except OSError as e:
            self._record_failure(str(directory), e.strerror or str(e))
            return None
        return entries

    def _record_failure(self, identity: str, reason: str) -> None:
        failure = ListingFailure(identity, reason)
        self.listing_failures.append(failure)
        log_warning(f"[FileScanner] {failure}")

    def _emit_progress(
        self,
        callback: Optional[ProgressCallback],
        force: bool = False,
    ) -> None:
        """
        Emit progress voi throttling.

        Args:
            callback: Progress callback function
            force: Bo qua throttle va emit ngay
        """
        if not callback:
            return

        current_time = time.monotonic() * 1000
        if not force and current_time - self._last_progress_time < self.THROTTLE_INTERVAL_MS:
            return
        self._last_progress_time = current_time

        # Copy progress de callback khong giu reference toi state dang thay doi
        progress_copy = ScanProgress(
            directories=self._progress.directories,
            files=self._progress.files,
            current_path=self._progress.current_path,
        )
        try:
            callback(progress_copy)
        except Exception as e:
            log_debug(f"[FileScanner] Progress callback error: {e}")


def _classify(dir_entry: os.DirEntry) -> Optional[bool]:
    """
    Phan loai entry: True = directory, False = file, None = bo qua.

    - Directory that (khong phai symlink) -> True
    - Regular file hoac symlink toi file -> False
    - Symlink toi directory, dangling symlink, fifo/socket/device -> None
    """
    try:
        if dir_entry.is_dir(follow_symlinks=False):
            return True
        if dir_entry.is_file(follow_symlinks=True):
            return False
    except OSError:
        return None
    return None


def build_tree(
    roots: Sequence[Union[str, Path]],
    policy: ExclusionPolicy,
    cancel_token: Optional[CancelToken] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> TreeItem:
    """
    Convenience function: build tree cho roots voi policy.

    Raises:
        Cancelled: Neu cancel_token bi cancel
    """
    return FileScanner(policy).scan(
        roots,
        cancel_token=cancel_token,
        progress_callback=progress_callback,
    )
