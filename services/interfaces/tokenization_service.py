"""
ITokenizationService - Interface cho dich vu dem token.

Dinh nghia contract ma bat ky TokenizationService nao cung phai tuan theo.
Cho phep dependency injection va testability (mock/stub).

Methods:
- count_tokens(): Estimate token trong text
- count_tokens_for_file(): Dem token cho 1 file (dong bo, co cache)
- count_tokens_for_content(): Dem token cho noi dung da doc (co cache)
- request_file_tokens(): Dem token cho 1 file trong background
- peek_file_tokens(): Trang thai cache hien tai, khong block
- set_estimator(): Doi estimator strategy (clear cache)
- clear_cache() / clear_file_from_cache(): Invalidate cache
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future
from pathlib import Path
from typing import Hashable, Optional, Union

from core.encoders import TokenEstimator
from core.tokenization.cache import CacheEntry


class ITokenizationService(ABC):
    """
    Interface cho dich vu tokenization.

    Moi implementation phai dam bao:
    - Thread-safe cho moi operation
    - Moi identity co toi da 1 computation dang chay (coalescing)
    - Khong su dung global mutable state
    """

    @abstractmethod
    def count_tokens(self, text: Union[str, bytes]) -> int:
        """
        Estimate so token trong mot doan text.

        Args:
            text: Doan text (hoac bytes) can dem

        Returns:
            So luong tokens uoc luong
        """
        ...

    @abstractmethod
    def count_tokens_for_file(self, file_path: Union[str, Path]) -> int:
        """
        Dem so token trong mot file, dung cache.

        Args:
            file_path: Duong dan den file

        Returns:
            So luong tokens, hoac 0 neu file khong doc duoc
        """
        ...

    @abstractmethod
    def count_tokens_for_content(
        self,
        identity: str,
        text: str,
        fingerprint: Optional[Hashable] = None,
    ) -> int:
        """
        Dem token cho noi dung da doc san cua mot file, dung chung cache.

        Args:
            identity: Canonical path cua file
            text: Noi dung da doc
            fingerprint: Fingerprint cua file luc doc

        Returns:
            So luong tokens
        """
        ...

    @abstractmethod
    def request_file_tokens(self, file_path: Union[str, Path]) -> "Future[int]":
        """
        Yeu cau dem token cho 1 file trong background.

        Returns:
            Future[int]; cac request dong thoi cho cung file dung chung 1 Future
        """
        ...

    @abstractmethod
    def peek_file_tokens(self, file_path: Union[str, Path]) -> CacheEntry:
        """Snapshot trang thai cache cua file, khong block."""
        ...

    @abstractmethod
    def set_estimator(self, estimator: TokenEstimator) -> None:
        """
        Doi estimator strategy.

        Cache bi xoa vi count cu khong con dung voi estimator moi.
        """
        ...

    @abstractmethod
    def clear_cache(self) -> None:
        """Xoa toan bo token cache."""
        ...

    @abstractmethod
    def clear_file_from_cache(self, path: str) -> None:
        """
        Xoa cache entry cho mot file cu the.

        Args:
            path: Duong dan file can xoa khoi cache
        """
        ...
