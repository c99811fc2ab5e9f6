"""
Threading Utilities - Handle cho background tasks (scan, aggregate).

Moi task chay tren executor, duoc track bang TaskHandle:
- cancel(): set CancelToken, task se dung tai checkpoint tiep theo
- result(): doi ket qua (raise Cancelled neu task bi huy)
"""

import itertools
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Optional

from core.cancellation import CancelToken

_task_counter = itertools.count(1)
_counter_lock = threading.Lock()


def next_task_id(kind: str) -> str:
    """Tao task id unique trong process, vd: 'scan_3'."""
    with _counter_lock:
        return f"{kind}_{next(_task_counter)}"


@dataclass
class TaskHandle:
    """Handle de track va cancel mot background task."""

    task_id: str
    kind: str
    cancel_token: CancelToken
    future: "Future[Any]"

    def cancel(self) -> None:
        """Cancel task nay."""
        self.cancel_token.cancel()

    def is_cancelled(self) -> bool:
        """Check xem task da bi cancel chua."""
        return self.cancel_token.is_cancelled()

    def done(self) -> bool:
        return self.future.done()

    def result(self, timeout: Optional[float] = None) -> Any:
        """
        Doi task hoan thanh va tra ve ket qua.

        Raises:
            Cancelled: Task bi huy
            TimeoutError: Het timeout
        """
        return self.future.result(timeout=timeout)
