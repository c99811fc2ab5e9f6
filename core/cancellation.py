"""
Cancellation token cho scan va aggregation - thread-safe.

Thay the global flags (is_scanning / is_counting_tokens) bang token
gan voi tung operation: moi scan/aggregation co CancelToken rieng,
nen cancel mot operation khong anh huong operation khac.

Su dung threading.Event de dam bao thread-safe
khi doc/ghi tu nhieu threads (caller thread, worker threads).
"""

import threading
from typing import Optional

from core.errors import Cancelled


class CancelToken:
    """
    Token de signal cancellation cho mot operation.

    Usage:
        token = CancelToken()
        executor.submit(build_tree, roots, policy, token)
        ...
        token.cancel()
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Signal cancellation. Goi nhieu lan khong loi."""
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """
        Raise Cancelled neu token da bi cancel.

        Goi tai cac checkpoint: directory boundary, giua cac files.
        """
        if self._event.is_set():
            raise Cancelled()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block toi khi bi cancel hoac het timeout. Tra ve True neu da cancel."""
        return self._event.wait(timeout=timeout)


def check_cancelled(token: Optional[CancelToken]) -> None:
    """Helper cho code path co token optional."""
    if token is not None:
        token.raise_if_cancelled()
