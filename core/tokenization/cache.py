"""
Token cache voi request coalescing va fingerprint-based invalidation.

Thread-safe map tu identity (file path) -> CacheEntry:
- ABSENT   : Chua tung duoc request
- PENDING  : Dang co MOT loader chay, moi caller khac attach vao cung Future
- READY    : Da co count
- FAILED   : Loader raise; request tiep theo se load lai dung mot lan

Invariant: tai moi thoi diem, moi identity co toi da 1 loader dang chay.
Moi transition deu xay ra duoi self._lock (claim, complete, invalidate).

Fingerprint (vd: (size, mtime_ns)) la optional: READY entry co fingerprint
khac voi fingerprint caller truyen vao se bi tinh lai. Khong truyen
fingerprint = keying chi theo identity.
"""

import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Hashable, Optional

from core.errors import Cancelled
from core.logging_config import log_debug


class CacheState(Enum):
    ABSENT = "absent"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class CacheEntry:
    """
    Snapshot immutable cua trang thai mot identity trong cache.

    UI dung snapshot nay de render "Calculating...", "~N tk" hoac "(Error)"
    ma khong block.
    """

    state: CacheState
    count: Optional[int] = None
    reason: Optional[str] = None
    fingerprint: Optional[Hashable] = None


ABSENT_ENTRY = CacheEntry(CacheState.ABSENT)


class _Record:
    """Trang thai mutable noi bo, chi duoc sua duoi TokenCache._lock."""

    __slots__ = ("state", "count", "reason", "fingerprint", "future")

    def __init__(self, fingerprint: Optional[Hashable]):
        self.state = CacheState.PENDING
        self.count: Optional[int] = None
        self.reason: Optional[str] = None
        self.fingerprint = fingerprint
        self.future: "Future[int]" = Future()
        # Future o trang thai RUNNING -> caller khong the cancel() no
        self.future.set_running_or_notify_cancel()

    def snapshot(self) -> CacheEntry:
        return CacheEntry(self.state, self.count, self.reason, self.fingerprint)


class TokenCache:
    """
    Cache token counts voi coalescing, thread-safe.

    Khong tu evict: entries ton tai suot vong doi cua cache instance.
    Implement ICacheable (invalidate_path / invalidate_all / size).
    """

    def __init__(self) -> None:
        self._entries: Dict[str, _Record] = {}
        self._lock = threading.Lock()

    def get_or_compute(
        self,
        identity: str,
        loader: Callable[[], int],
        fingerprint: Optional[Hashable] = None,
        executor: Optional[Executor] = None,
    ) -> "Future[int]":
        """
        Lay count cho identity, tinh bang loader neu can.

        - READY (fingerprint khop): tra ve Future da complete
        - PENDING: attach vao Future dang chay, KHONG goi loader lan nua
        - ABSENT / FAILED / READY nhung stale: claim va chay loader

        Args:
            identity: Khoa cua entry (canonical path)
            loader: Ham doc + estimate, raise neu that bai
            fingerprint: Fingerprint hien tai cua file (optional)
            executor: Neu co, loader chay tren executor; neu khong,
                      loader chay dong bo trong thread cua caller

        Returns:
            Future[int] - moi caller dong thoi nhan cung mot Future
        """
        with self._lock:
            record = self._entries.get(identity)
            if record is not None:
                if record.state is CacheState.PENDING:
                    return record.future
                if record.state is CacheState.READY and (
                    fingerprint is None or record.fingerprint == fingerprint
                ):
                    return record.future
            record = _Record(fingerprint)
            self._entries[identity] = record

        if executor is None:
            self._run_loader(identity, record, loader)
        else:
            try:
                task = executor.submit(self._run_loader, identity, record, loader)
            except RuntimeError as e:
                # Executor da shutdown
                self._complete(identity, record, error=Cancelled(f"Executor unavailable: {e}"))
            else:
                task.add_done_callback(
                    lambda t: self._on_task_done(identity, record, t)
                )

        return record.future

    def peek(self, identity: str) -> CacheEntry:
        """Snapshot trang thai hien tai, khong bao gio block hay trigger load."""
        with self._lock:
            record = self._entries.get(identity)
            return record.snapshot() if record is not None else ABSENT_ENTRY

    def _run_loader(self, identity: str, record: _Record, loader: Callable[[], int]) -> None:
        try:
            count = loader()
        except Exception as e:
            self._complete(identity, record, error=e)
        else:
            self._complete(identity, record, count=count)

    def _on_task_done(self, identity: str, record: _Record, task: Future) -> None:
        # Task bi huy truoc khi chay (executor shutdown voi cancel_futures)
        if task.cancelled():
            self._complete(identity, record, error=Cancelled("Token count cancelled"))

    def _complete(
        self,
        identity: str,
        record: _Record,
        count: Optional[int] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        with self._lock:
            if record.state is not CacheState.PENDING:
                return
            if error is None:
                record.state = CacheState.READY
                record.count = count
            else:
                record.state = CacheState.FAILED
                record.reason = str(error) or type(error).__name__
            if self._entries.get(identity) is not record:
                log_debug(f"[TokenCache] Discarding result for invalidated entry {identity}")

        # Release waiters ngoai lock
        if error is None:
            record.future.set_result(count)  # type: ignore[arg-type]
        else:
            record.future.set_exception(error)

    # ================================================================
    # ICacheable protocol
    # ================================================================

    def invalidate_path(self, path: str) -> None:
        """
        Xoa entry cua mot identity.

        Neu entry dang PENDING, waiters van nhan ket qua nhung ket qua
        khong duoc luu lai.
        """
        with self._lock:
            self._entries.pop(path, None)

    def invalidate_all(self) -> None:
        """Xoa toan bo cache."""
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        return len(self)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
