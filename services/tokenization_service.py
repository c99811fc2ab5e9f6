"""
TokenizationService - Concrete implementation cua ITokenizationService.

Quan ly estimator va TokenCache o instance level (khong co global state).
Cache duoc dung chung giua:
- Badge counts (request_file_tokens): chay tren executor rieng cua service
- Aggregation (count_tokens_for_content): chay inline tren worker cua Aggregator

Hai duong nay dung executor khac nhau nen worker cua Aggregator khong
bao gio phai doi mot task dang xep hang tren chinh pool cua no.

Dependency Flow:
  TokenizationService -> core.encoders (TokenEstimator)
                      -> core.tokenization.cache (TokenCache)
                      -> core.tokenization.counter (doc file + fingerprint)
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Hashable, Optional, Union

from config.engine_settings import DEFAULT_MAX_FILE_BYTES
from core.encoders import TokenEstimator, WordSplitEstimator
from core.errors import EngineError, FileFailure
from core.logging_config import log_debug, log_info
from core.tokenization.cache import CacheEntry, TokenCache
from core.tokenization.counter import estimate_file_tokens, file_fingerprint
from services.interfaces.tokenization_service import ITokenizationService


def _identity(file_path: Union[str, Path]) -> str:
    """Canonical identity cua file: absolute path string (khong resolve symlink)."""
    path = Path(file_path)
    if not path.is_absolute():
        path = path.resolve()
    return str(path)


class TokenizationService(ITokenizationService):
    """
    Dich vu dem token - thread-safe, khong dung global state.

    Executor cho background counts duoc tao lazy o lan request dau tien.
    """

    def __init__(
        self,
        estimator: Optional[TokenEstimator] = None,
        cache: Optional[TokenCache] = None,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        max_workers: int = 2,
    ) -> None:
        """
        Khoi tao TokenizationService.

        Args:
            estimator: TokenEstimator (default: WordSplitEstimator)
            cache: TokenCache dung chung (default: cache moi)
            max_file_bytes: Size limit khi doc file
            max_workers: So threads cho background counts
        """
        self._estimator: TokenEstimator = estimator or WordSplitEstimator()
        self._cache = cache if cache is not None else TokenCache()
        self._max_file_bytes = max_file_bytes
        self._max_workers = max(1, max_workers)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def cache(self) -> TokenCache:
        return self._cache

    @property
    def estimator(self) -> TokenEstimator:
        return self._estimator

    @property
    def max_file_bytes(self) -> int:
        return self._max_file_bytes

    # ================================================================
    # Public API - ITokenizationService contract
    # ================================================================

    def count_tokens(self, text: Union[str, bytes]) -> int:
        return self._estimator.estimate(text)

    def count_tokens_for_file(self, file_path: Union[str, Path]) -> int:
        """
        Dem token cho 1 file, dong bo tren thread cua caller.

        Returns:
            So luong tokens, hoac 0 neu file khong doc duoc
        """
        identity = _identity(file_path)
        future = self._cache.get_or_compute(
            identity,
            self._file_loader(identity),
            fingerprint=file_fingerprint(identity),
        )
        try:
            return future.result()
        except FileFailure as e:
            log_debug(f"[TokenizationService] {e}")
            return 0

    def count_tokens_for_content(
        self,
        identity: str,
        text: str,
        fingerprint: Optional[Hashable] = None,
    ) -> int:
        """
        Dem token cho noi dung da doc, qua cache.

        Neu mot badge count dang chay cho cung file, attach vao no thay vi
        estimate lan nua. Neu computation do that bai, estimate truc tiep
        tu text da co.
        """
        estimator = self._estimator
        future = self._cache.get_or_compute(
            identity,
            lambda: estimator.estimate(text),
            fingerprint=fingerprint,
        )
        try:
            return future.result()
        except EngineError as e:
            log_debug(f"[TokenizationService] Shared count failed, estimating directly: {e}")
            return estimator.estimate(text)

    def request_file_tokens(self, file_path: Union[str, Path]) -> "Future[int]":
        identity = _identity(file_path)
        return self._cache.get_or_compute(
            identity,
            self._file_loader(identity),
            fingerprint=file_fingerprint(identity),
            executor=self._get_executor(),
        )

    def peek_file_tokens(self, file_path: Union[str, Path]) -> CacheEntry:
        return self._cache.peek(_identity(file_path))

    def set_estimator(self, estimator: TokenEstimator) -> None:
        with self._lock:
            self._estimator = estimator
        self._cache.invalidate_all()
        log_info(f"[TokenizationService] Estimator set to {type(estimator).__name__}")

    def clear_cache(self) -> None:
        """Xoa toan bo file token cache."""
        self._cache.invalidate_all()

    def clear_file_from_cache(self, path: str) -> None:
        self._cache.invalidate_path(_identity(path))

    def shutdown(self, wait: bool = False) -> None:
        """
        Dung background executor. Counts dang xep hang bi huy,
        waiters nhan Cancelled.
        """
        with self._lock:
            self._closed = True
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait, cancel_futures=True)

    # ================================================================
    # Internal
    # ================================================================

    def _file_loader(self, identity: str):
        estimator = self._estimator
        max_bytes = self._max_file_bytes

        def load() -> int:
            return estimate_file_tokens(identity, estimator, max_bytes)

        return load

    def _get_executor(self) -> Optional[ThreadPoolExecutor]:
        """Lazy init executor. Tra ve None sau shutdown (loader chay inline)."""
        with self._lock:
            if self._closed:
                return None
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="token_worker",
                )
            return self._executor
