"""
ContextEngine - Composition root va public API cua aggregation engine.

So huu (khong co singleton):
- TokenizationService (+ TokenCache)
- ScanController (+ scan executor)
- Aggregator (+ executor cho async aggregation)

Su dung:
    with ContextEngine() as engine:
        tree = engine.start_scan(["/path/to/project"]).result()
        engine.set_checked(str(some_file), True)
        result = engine.aggregate()
        print(result.combined_text, result.total_tokens)

Thread Safety: moi method deu thread-safe. Tree tra ve la shared data,
caller chi nen toggle checked (khong sua cau truc).
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Union

from config.engine_settings import EngineSettings
from core.cancellation import CancelToken
from core.encoders import TokenEstimator, get_estimator
from core.exclusion_policy import build_default_policy
from core.prompting.aggregator import Aggregator
from core.prompting.types import AggregationResult
from core.tokenization.cache import CacheEntry
from core.utils.file_scanner import ProgressCallback
from core.utils.file_utils import TreeItem, get_checked_items, set_checked
from core.utils.threading_utils import TaskHandle, next_task_id
from services.cache_protocol import ICacheable
from services.interfaces.tokenization_service import ITokenizationService
from services.scan_controller import PolicyFactory, ScanController
from services.tokenization_service import TokenizationService

logger = logging.getLogger(__name__)


class ContextEngine:
    """
    Facade: scan -> check -> aggregate.

    Moi instance doc lap: hai engines khong chia se cache hay executors.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        estimator: Optional[TokenEstimator] = None,
        policy_factory: Optional[PolicyFactory] = None,
        on_tree_ready: Optional[Callable[[TreeItem], None]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Args:
            settings: EngineSettings (default: defaults)
            estimator: TokenEstimator (default: theo settings.estimator)
            policy_factory: roots -> ExclusionPolicy (default: build_default_policy)
            on_tree_ready: Callback khi tree moi duoc publish
            progress_callback: Progress cua scan
        """
        self.settings = settings or EngineSettings()
        self._policy_factory: PolicyFactory = policy_factory or (
            lambda roots: build_default_policy(roots, self.settings)
        )

        self._tokenization = TokenizationService(
            estimator=estimator
            or get_estimator(self.settings.estimator, self.settings.tiktoken_encoding),
            max_file_bytes=self.settings.max_file_bytes,
        )
        self._scan_controller = ScanController(
            policy_factory=self._policy_factory,
            settings=self.settings,
            on_tree_ready=on_tree_ready,
            progress_callback=progress_callback,
        )
        # Caches can invalidate khi caller bao file thay doi
        self._caches: dict[str, ICacheable] = {
            "token_cache": self._tokenization.cache,
        }
        # Single thread: cac async aggregation chay tuan tu, workers doc file
        # nam trong pool rieng cua Aggregator
        self._aggregate_executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="aggregate"
        )
        self._lock = threading.Lock()
        self._closed = False

        logger.info("ContextEngine initialized")

    # ================================================================
    # Scan
    # ================================================================

    def start_scan(self, roots: Sequence[Union[str, Path]]) -> TaskHandle:
        """Scan roots trong background. handle.result() tra ve root TreeItem."""
        return self._scan_controller.start_scan(roots)

    @property
    def current_tree(self) -> Optional[TreeItem]:
        return self._scan_controller.current_tree

    @property
    def listing_failures(self) -> list:
        return self._scan_controller.listing_failures

    def is_scanning(self) -> bool:
        return self._scan_controller.is_scanning()

    def set_checked(self, path: Union[str, Path], checked: bool = True) -> bool:
        """
        Toggle checked cho item trong current tree.

        Returns:
            False neu chua co tree hoac path khong nam trong tree
        """
        tree = self.current_tree
        if tree is None:
            return False
        return set_checked(tree, _as_identity(path), checked)

    # ================================================================
    # Aggregate
    # ================================================================

    def aggregate(
        self,
        checked_items: Optional[Iterable[TreeItem]] = None,
        include_header: Optional[bool] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> AggregationResult:
        """
        Aggregate dong bo.

        Args:
            checked_items: Items can aggregate (None = checked items cua current tree)
            include_header: None = theo settings.include_header
            cancel_token: Token de huy

        Raises:
            Cancelled: Neu bi huy
        """
        if checked_items is None:
            tree = self.current_tree
            checked_items = get_checked_items(tree) if tree is not None else []
        if include_header is None:
            include_header = self.settings.include_header

        return self._build_aggregator().aggregate(
            list(checked_items), include_header, cancel_token
        )

    def start_aggregate(
        self,
        checked_items: Optional[Iterable[TreeItem]] = None,
        include_header: Optional[bool] = None,
    ) -> TaskHandle:
        """Aggregate trong background. handle.result() tra ve AggregationResult."""
        # Snapshot selection ngay luc goi, khong phai luc task chay
        if checked_items is None:
            tree = self.current_tree
            checked_items = get_checked_items(tree) if tree is not None else []
        items = list(checked_items)

        token = CancelToken()
        future = self._aggregate_executor.submit(
            self.aggregate, items, include_header, token
        )
        return TaskHandle(
            task_id=next_task_id("aggregate"),
            kind="aggregate",
            cancel_token=token,
            future=future,
        )

    def cancel(self, handle: TaskHandle) -> None:
        handle.cancel()

    # ================================================================
    # Token badges
    # ================================================================

    def request_file_tokens(self, path: Union[str, Path]) -> "Future[int]":
        return self._tokenization.request_file_tokens(path)

    def peek_file_tokens(self, path: Union[str, Path]) -> CacheEntry:
        return self._tokenization.peek_file_tokens(path)

    def invalidate_file(self, path: Union[str, Path]) -> None:
        """Caller bao file da thay doi: xoa entries cua file trong moi cache."""
        identity = _as_identity(path)
        for name, cache in self._caches.items():
            try:
                cache.invalidate_path(identity)
            except Exception as e:
                logger.warning("Failed to invalidate %s for %s: %s", name, identity, e)

    def invalidate_caches(self) -> None:
        """Xoa toan bo caches (vd: sau khi doi branch)."""
        for name, cache in self._caches.items():
            try:
                cache.invalidate_all()
            except Exception as e:
                logger.warning("Failed to invalidate %s: %s", name, e)

    def cache_sizes(self) -> dict[str, int]:
        """So entries hien co cua moi cache."""
        return {name: cache.size() for name, cache in self._caches.items()}

    @property
    def tokenization(self) -> ITokenizationService:
        return self._tokenization

    # ================================================================
    # Lifecycle
    # ================================================================

    def shutdown(self, wait: bool = False) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._scan_controller.shutdown(wait=wait)
        self._aggregate_executor.shutdown(wait=wait, cancel_futures=True)
        self._tokenization.shutdown(wait=wait)
        logger.info("ContextEngine shut down")

    def __enter__(self) -> "ContextEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)

    def _build_aggregator(self) -> Aggregator:
        # Dung lai policy da build tree, khong build lai tren caller thread
        _, roots, policy = self._scan_controller.published()
        return Aggregator(
            self._tokenization,
            policy=policy,
            max_file_bytes=self.settings.max_file_bytes,
            max_workers=self.settings.max_workers,
            workspace_root=roots[0] if len(roots) == 1 else None,
            use_relative_paths=self.settings.use_relative_paths,
        )


def _as_identity(path: Union[str, Path]) -> str:
    p = Path(path)
    if not p.is_absolute():
        p = p.resolve()
    return str(p)
