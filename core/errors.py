"""
Engine Errors - Taxonomy cac loi cua scan/aggregation engine.

- Cancelled: Operation bi huy theo yeu cau caller (KHONG phai failure)
- FileFailure: Base cho cac loi lien quan toi 1 entry tren filesystem
    - IOFailure: File khong doc duoc
    - Truncated: Noi dung vuot qua size limit
    - ListingFailure: Khong liet ke duoc children cua directory
    - ProcessingFailure: Loi bat ky khac khi xu ly 1 file

Propagation:
- ListingFailure bi hap thu trong scan (directory hien thi rong)
- IOFailure/Truncated/ProcessingFailure bi hap thu per-file vao AggregationResult.per_file_errors
- Cancelled ket thuc operation tuong ung
"""


class EngineError(Exception):
    """Base class cho moi loi cua engine."""


class Cancelled(EngineError):
    """Operation (scan hoac aggregation) bi huy boi caller."""

    def __init__(self, message: str = "Operation cancelled"):
        super().__init__(message)


class FileFailure(EngineError):
    """Loi gan voi mot entry cu the (identity = canonical path)."""

    def __init__(self, identity: str, reason: str):
        self.identity = identity
        self.reason = reason
        super().__init__(f"{reason}: {identity}")


class IOFailure(FileFailure):
    """File khong doc duoc (permission, I/O error, file bi xoa...)."""


class ListingFailure(FileFailure):
    """Directory khong the liet ke children."""


class Truncated(FileFailure):
    """Noi dung file vuot qua size limit va da bi cat."""

    def __init__(self, identity: str, limit: int):
        self.limit = limit
        super().__init__(identity, f"Truncated to first {limit} bytes")


class ProcessingFailure(FileFailure):
    """Loi khong mong doi khi xu ly file da doc (vd: estimator raise)."""
