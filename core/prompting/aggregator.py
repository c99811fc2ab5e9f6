"""
Aggregator - Gom noi dung cac files duoc check thanh mot combined text.

Pipeline:
1. expand_checked_items(): checked items -> file leaves da dedup (truoc moi I/O)
2. Moi file: doc (size limit) + estimate tokens tren thread pool
3. Ket qua duoc thu theo thu tu traversal, KHONG theo thu tu hoan thanh
4. format_files_plain(): render headers/markers + summary line

Loi doc/xu ly file bi hap thu per-file (FileError), Cancelled ket thuc ca lan
aggregate va ket qua do dang bi bo.
"""

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Optional, Union

from config.engine_settings import DEFAULT_MAX_FILE_BYTES
from core.cancellation import CancelToken, check_cancelled
from core.errors import Cancelled, IOFailure, ProcessingFailure, Truncated
from core.exclusion_policy import ExclusionPolicy
from core.logging_config import log_error, log_info, log_warning
from core.prompting.file_collector import expand_checked_items
from core.prompting.formatters.plain import format_files_plain
from core.prompting.path_utils import path_for_display
from core.prompting.types import AggregationResult, FileEntry, FileError
from core.tokenization.batch import get_worker_count
from core.tokenization.counter import read_file_content
from core.utils.file_utils import TreeItem, get_checked_items
from services.interfaces.tokenization_service import ITokenizationService

EMPTY_RESULT = AggregationResult(combined_text="", total_tokens=0, file_count=0)


class Aggregator:
    """
    Doc va noi cac files duoc check.

    Neu khong truyen executor, moi lan aggregate tao mot ThreadPoolExecutor
    tam thoi, so workers tinh theo so files (xem get_worker_count).
    """

    def __init__(
        self,
        tokenization: ITokenizationService,
        executor: Optional[Executor] = None,
        policy: Optional[ExclusionPolicy] = None,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        max_workers: int = 4,
        workspace_root: Optional[Union[str, Path]] = None,
        use_relative_paths: bool = False,
    ):
        self._tokenization = tokenization
        self._executor = executor
        self.policy = policy
        self.max_file_bytes = max_file_bytes
        self.max_workers = max(1, max_workers)
        self.workspace_root = workspace_root
        self.use_relative_paths = use_relative_paths

    def aggregate(
        self,
        checked_items: Iterable[TreeItem],
        include_header: bool = True,
        cancel_token: Optional[CancelToken] = None,
    ) -> AggregationResult:
        """
        Aggregate cac checked items.

        Args:
            checked_items: Items duoc check (file hoac directory)
            include_header: Them file headers va summary line
            cancel_token: Token de huy giua cac files

        Returns:
            AggregationResult

        Raises:
            Cancelled: Neu cancel_token bi cancel truoc khi xong
        """
        files = expand_checked_items(checked_items, self.policy)
        if not files:
            return EMPTY_RESULT

        check_cancelled(cancel_token)
        log_info(f"[Aggregator] Aggregating {len(files)} files")

        entries = self._process_all(files, cancel_token)

        per_file_errors: list[FileError] = []
        for entry in entries:
            if entry.error is not None:
                per_file_errors.append(FileError(str(entry.path), entry.error))
            if entry.truncated is not None:
                per_file_errors.append(FileError(str(entry.path), entry.truncated))

        total_tokens = sum(entry.tokens for entry in entries)
        return AggregationResult(
            combined_text=format_files_plain(entries, include_header),
            total_tokens=total_tokens,
            file_count=len(entries),
            per_file_errors=tuple(per_file_errors),
        )

    def aggregate_tree(
        self,
        tree: TreeItem,
        include_header: bool = True,
        cancel_token: Optional[CancelToken] = None,
    ) -> AggregationResult:
        """Aggregate moi item duoc check trong tree (thu tu pre-order)."""
        return self.aggregate(get_checked_items(tree), include_header, cancel_token)

    def _process_all(
        self,
        files: list[TreeItem],
        cancel_token: Optional[CancelToken],
    ) -> list[FileEntry]:
        owned = self._executor is None
        executor = self._executor or ThreadPoolExecutor(
            max_workers=get_worker_count(len(files), self.max_workers),
            thread_name_prefix="aggregate_worker",
        )
        futures: list[Future] = []
        try:
            for item in files:
                futures.append(executor.submit(self._process_file, item, cancel_token))

            entries: list[FileEntry] = []
            for future in futures:
                entries.append(future.result())
                check_cancelled(cancel_token)
            return entries
        except Cancelled:
            for future in futures:
                future.cancel()
            log_info("[Aggregator] Aggregation cancelled")
            raise
        finally:
            if owned:
                executor.shutdown(wait=True, cancel_futures=True)

    def _process_file(self, item: TreeItem, cancel_token: Optional[CancelToken]) -> FileEntry:
        """Doc 1 file + estimate tokens. Chay tren worker thread."""
        check_cancelled(cancel_token)

        path = Path(item.path)
        display = path_for_display(path, self.workspace_root, self.use_relative_paths)

        try:
            content = read_file_content(path, self.max_file_bytes)
        except IOFailure as e:
            log_warning(f"[Aggregator] Failed to read file: {e}")
            return FileEntry(path=path, display_path=display, content=None, error=e)
        except Exception as e:
            return self._processing_failure(path, display, e)

        truncated: Optional[Truncated] = None
        if content.truncated:
            truncated = Truncated(item.path, self.max_file_bytes)
            log_warning(f"[Aggregator] {truncated}")

        try:
            tokens = self._tokenization.count_tokens_for_content(
                item.path, content.text, content.fingerprint
            )
        except Cancelled:
            raise
        except Exception as e:
            return self._processing_failure(path, display, e)

        return FileEntry(
            path=path,
            display_path=display,
            content=content.text,
            tokens=tokens,
            truncated=truncated,
        )

    @staticmethod
    def _processing_failure(path: Path, display: str, error: Exception) -> FileEntry:
        """Loi khong mong doi tren 1 file: ghi nhan va tiep tuc cac file khac."""
        failure = ProcessingFailure(str(path), f"{type(error).__name__}: {error}")
        log_error(f"[Aggregator] Error processing file: {path}", error)
        return FileEntry(path=path, display_path=display, content=None, error=failure)
