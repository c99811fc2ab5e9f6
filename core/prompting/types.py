"""
Prompt Types - Cac kieu du lieu dung chung cho pipeline aggregation.

Cung cap:
- FileEntry: 1 file da doc (path, content, error, tokens)
- FileError: Record loi per-file trong AggregationResult
- AggregationResult: Ket qua immutable cua mot lan aggregate
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from core.errors import FileFailure


@dataclass(frozen=True, slots=True)
class FileEntry:
    """
    Dai dien cho 1 file da doc tu disk.

    Immutable (frozen) de dam bao thread-safe khi parallel processing.

    Attributes:
        path: Path goc cua file (identity)
        display_path: Path hien thi trong header (co the la relative path)
        content: Noi dung file (None neu doc that bai)
        error: Loi doc file (None neu thanh cong)
        tokens: Token estimate cua content (0 neu that bai)
        truncated: Loi Truncated neu file bi cat bot
    """

    path: Path
    display_path: str
    content: Optional[str]
    error: Optional[FileFailure] = None
    tokens: int = 0
    truncated: Optional[FileFailure] = None

    @property
    def ok(self) -> bool:
        return self.content is not None


@dataclass(frozen=True, slots=True)
class FileError:
    """Mot record loi: path + typed error."""

    path: str
    error: FileFailure

    @property
    def reason(self) -> str:
        return self.error.reason


@dataclass(frozen=True)
class AggregationResult:
    """
    Ket qua cua mot lan aggregate.

    Attributes:
        combined_text: Text da noi (headers + contents)
        total_tokens: Tong token estimate cua cac file doc thanh cong
        file_count: So files da attempt (sau dedup), gom ca file loi
        per_file_errors: Cac loi theo thu tu traversal
    """

    combined_text: str
    total_tokens: int
    file_count: int
    per_file_errors: tuple[FileError, ...] = field(default_factory=tuple)
