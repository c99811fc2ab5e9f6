"""
ScanController - Chay tree build tren background executor.

Most-recent-request-wins:
- start_scan() moi huy scan dang chay (CancelToken)
- Moi scan co generation; chi scan co generation moi nhat duoc publish
- Publish = thay reference current_tree (cung roots va policy) duoi lock,
  roi goi on_tree_ready

Caller quan sat ket qua qua TaskHandle.future (tra ve root TreeItem)
hoac qua callback.
"""

import logging
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from config.engine_settings import EngineSettings
from core.cancellation import CancelToken
from core.errors import Cancelled
from core.exclusion_policy import ExclusionPolicy, build_default_policy
from core.utils.file_scanner import FileScanner, ProgressCallback
from core.utils.file_utils import TreeItem
from core.utils.threading_utils import TaskHandle, next_task_id

logger = logging.getLogger(__name__)

PolicyFactory = Callable[[Sequence[Path]], ExclusionPolicy]


class ScanController:
    """
    Quan ly vong doi cua cac scans, dam bao toi da 1 tree hien hanh.

    Thread Safety: moi method co the goi tu bat ky thread nao.
    """

    def __init__(
        self,
        policy_factory: Optional[PolicyFactory] = None,
        settings: Optional[EngineSettings] = None,
        executor: Optional[Executor] = None,
        on_tree_ready: Optional[Callable[[TreeItem], None]] = None,
        on_scan_failed: Optional[Callable[[BaseException], None]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Args:
            policy_factory: roots -> ExclusionPolicy (default: build_default_policy)
            settings: EngineSettings cho default policy
            executor: Executor chay scans (default: executor rieng 2 threads)
            on_tree_ready: Goi khi tree moi duoc publish (tren worker thread)
            on_scan_failed: Goi khi scan loi (khong goi cho Cancelled)
            progress_callback: Throttled progress cua FileScanner
        """
        self._settings = settings or EngineSettings()
        self._policy_factory = policy_factory or (
            lambda roots: build_default_policy(roots, self._settings)
        )
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="scan_worker"
        )
        self._on_tree_ready = on_tree_ready
        self._on_scan_failed = on_scan_failed
        self._progress_callback = progress_callback

        self._lock = threading.Lock()
        self._generation = 0
        self._current_tree: Optional[TreeItem] = None
        self._current_roots: tuple[Path, ...] = ()
        self._current_policy: Optional[ExclusionPolicy] = None
        self._active: Optional[TaskHandle] = None
        self._last_listing_failures: list = []

    # ================================================================
    # Public API
    # ================================================================

    def start_scan(self, roots: Sequence[Union[str, Path]]) -> TaskHandle:
        """
        Bat dau scan moi, huy scan dang chay (neu co).

        Args:
            roots: Cac thu muc goc

        Returns:
            TaskHandle; future tra ve root TreeItem hoac raise Cancelled
        """
        resolved = tuple(Path(r).resolve() for r in roots)
        token = CancelToken()

        with self._lock:
            if self._active is not None:
                self._active.cancel()
            self._generation += 1
            generation = self._generation
            task_id = next_task_id("scan")
            future = self._executor.submit(self._run_scan, resolved, token, generation)
            handle = TaskHandle(task_id=task_id, kind="scan", cancel_token=token, future=future)
            self._active = handle

        logger.info("Scan %s started for %d root(s)", task_id, len(resolved))
        return handle

    def cancel(self, handle: Optional[TaskHandle] = None) -> None:
        """Huy scan theo handle, hoac scan dang chay neu handle=None."""
        with self._lock:
            target = handle or self._active
        if target is not None:
            target.cancel()

    @property
    def current_tree(self) -> Optional[TreeItem]:
        with self._lock:
            return self._current_tree

    @property
    def current_roots(self) -> tuple[Path, ...]:
        with self._lock:
            return self._current_roots

    @property
    def current_policy(self) -> Optional[ExclusionPolicy]:
        """Policy da dung de build current_tree (None neu chua co tree)."""
        with self._lock:
            return self._current_policy

    def published(self) -> tuple[Optional[TreeItem], tuple[Path, ...], Optional[ExclusionPolicy]]:
        """(tree, roots, policy) cua cung mot lan publish, doc trong 1 lan lock."""
        with self._lock:
            return self._current_tree, self._current_roots, self._current_policy

    @property
    def listing_failures(self) -> list:
        """ListingFailures cua scan da publish gan nhat."""
        with self._lock:
            return list(self._last_listing_failures)

    def is_scanning(self) -> bool:
        with self._lock:
            return self._active is not None and not self._active.done()

    def shutdown(self, wait: bool = False) -> None:
        """Huy scan dang chay va dung executor (neu controller so huu no)."""
        self.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=wait, cancel_futures=True)

    # ================================================================
    # Internal
    # ================================================================

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _run_scan(
        self,
        roots: tuple[Path, ...],
        token: CancelToken,
        generation: int,
    ) -> TreeItem:
        try:
            # Scan da bi thay the truoc khi kip chay
            token.raise_if_cancelled()
            policy = self._policy_factory(roots)
            scanner = FileScanner(policy)
            tree = scanner.scan(
                roots,
                cancel_token=token,
                progress_callback=self._progress_callback,
            )
        except Cancelled:
            logger.info("Scan generation %d cancelled", generation)
            raise
        except Exception as e:
            logger.error("Scan generation %d failed: %s", generation, e, exc_info=True)
            if self._on_scan_failed is not None and self._is_current(generation):
                self._notify(self._on_scan_failed, e)
            raise

        with self._lock:
            # Scan moi hon da duoc yeu cau trong luc build -> khong publish
            if generation != self._generation or token.is_cancelled():
                superseded = True
            else:
                superseded = False
                self._current_tree = tree
                self._current_roots = roots
                self._current_policy = policy
                self._last_listing_failures = list(scanner.listing_failures)

        if superseded:
            logger.info("Scan generation %d superseded, result discarded", generation)
            raise Cancelled("Scan superseded by a newer request")

        if self._on_tree_ready is not None:
            self._notify(self._on_tree_ready, tree)
        return tree

    @staticmethod
    def _notify(callback: Callable, value) -> None:
        try:
            callback(value)
        except Exception as e:
            logger.warning("Scan callback failed: %s", e)
