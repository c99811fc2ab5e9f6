"""
ICacheable Protocol - Interface cho cac caches cua engine.

Protocol pattern cho phep cac cache implementations khong can ke thua,
chi can implement dung methods (vd: TokenCache).
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ICacheable(Protocol):
    """Protocol cho cac cache co the invalidate tu ben ngoai."""

    def invalidate_path(self, path: str) -> None:
        """
        Xoa cache entries lien quan den mot file path cu the.

        Goi khi caller biet file da thay doi hoac bi xoa.

        Args:
            path: Duong dan tuyet doi cua file da thay doi
        """
        ...

    def invalidate_all(self) -> None:
        """Xoa toan bo cache."""
        ...

    def size(self) -> int:
        """So luong entries hien co trong cache."""
        ...
