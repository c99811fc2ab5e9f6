"""
Tests cho core.prompting.aggregator - Aggregator.

Scenarios:
- .git bi loai, include_header=False -> "hello world", 2 tokens
- Check dirA -> b.txt roi c.txt, headers + summary, file_count == 2
- Partial failure: 1/3 files khong doc duoc -> 2 contents, 1 error, file_count == 3
- Dedup, determinism, truncation, cancellation
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from core.cancellation import CancelToken
from core.errors import Cancelled, IOFailure, ProcessingFailure, Truncated
from core.exclusion_policy import DefaultExclusionPolicy
from core.prompting.aggregator import Aggregator
from core.prompting.formatters.plain import ERROR_MARKER, FAILED_MARKER, FILE_HEADER
from core.tokenization.cache import CacheState
from core.utils.file_utils import find_item, get_checked_items
from services.tokenization_service import TokenizationService


@pytest.fixture
def tokenization():
    service = TokenizationService()
    yield service
    service.shutdown(wait=True)


@pytest.fixture
def aggregator(tokenization):
    return Aggregator(tokenization)


def _header(path: Path) -> str:
    return FILE_HEADER.format(path=str(path))


class TestScenarios:
    """Cac scenario chinh."""

    def test_git_bi_loai_khong_header(self, tmp_path, make_tree, scan, aggregator):
        make_tree(tmp_path, {"a.txt": "hello world", ".git": {"HEAD": "ref: refs/heads/main"}})
        tree = scan(tmp_path)
        tree.checked = True

        result = aggregator.aggregate_tree(tree, include_header=False)

        assert result.combined_text == "hello world"
        assert result.total_tokens == 2
        assert result.file_count == 1
        assert result.per_file_errors == ()

    def test_dir_a_co_header(self, tmp_path, make_tree, scan, aggregator):
        make_tree(tmp_path, {"dirA": {"c.txt": "see", "b.txt": "bee"}, "other.txt": "x"})
        tree = scan(tmp_path)
        root = tmp_path.resolve()
        find_item(tree, str(root / "dirA")).checked = True

        result = aggregator.aggregate_tree(tree, include_header=True)

        expected_body = (
            _header(root / "dirA" / "b.txt") + "bee" + _header(root / "dirA" / "c.txt") + "see"
        )
        assert result.combined_text == (
            "--- Combined Context (2 files, estimated ~2 tokens) ---\n" + expected_body
        )
        assert result.file_count == 2
        assert result.total_tokens == 2

    def test_partial_failure(self, tmp_path, make_tree, scan, aggregator):
        make_tree(tmp_path, {"a.txt": "one", "b.txt": "two words", "c.txt": "three"})
        tree = scan(tmp_path)
        tree.checked = True
        root = tmp_path.resolve()
        # File bien mat sau khi scan
        (root / "b.txt").unlink()

        result = aggregator.aggregate_tree(tree, include_header=True)

        assert result.file_count == 3
        assert result.total_tokens == 2
        assert len(result.per_file_errors) == 1
        error = result.per_file_errors[0]
        assert error.path == str(root / "b.txt")
        assert isinstance(error.error, IOFailure)
        assert FAILED_MARKER.format(path=str(root / "b.txt")) in result.combined_text
        assert "one" in result.combined_text
        assert "three" in result.combined_text

    def test_failure_marker_ca_khi_khong_header(self, tmp_path, make_tree, scan, aggregator):
        make_tree(tmp_path, {"a.txt": "alpha", "b.txt": "beta"})
        tree = scan(tmp_path)
        tree.checked = True
        root = tmp_path.resolve()
        (root / "a.txt").unlink()

        result = aggregator.aggregate_tree(tree, include_header=False)

        assert result.combined_text == FAILED_MARKER.format(path=str(root / "a.txt")) + "beta"

    def test_estimator_loi_tren_mot_file(self, tmp_path, make_tree, scan):
        make_tree(tmp_path, {"a.txt": "one", "b.txt": "boom", "c.txt": "three"})
        tree = scan(tmp_path)
        tree.checked = True
        root = tmp_path.resolve()

        class FailsOnBoom:
            def estimate(self, text):
                if text == "boom":
                    raise ValueError("estimator failed")
                return 1

        service = TokenizationService(estimator=FailsOnBoom())
        result = Aggregator(service).aggregate_tree(tree, include_header=False)

        assert result.file_count == 3
        assert result.total_tokens == 2
        assert len(result.per_file_errors) == 1
        error = result.per_file_errors[0]
        assert error.path == str(root / "b.txt")
        assert isinstance(error.error, ProcessingFailure)
        assert "estimator failed" in error.reason
        assert result.combined_text == (
            "one" + ERROR_MARKER.format(path=str(root / "b.txt")) + "three"
        )

    def test_khong_co_gi_duoc_check(self, tmp_path, make_tree, scan, aggregator):
        make_tree(tmp_path, {"a.txt": "x"})
        tree = scan(tmp_path)

        result = aggregator.aggregate_tree(tree)

        assert result.combined_text == ""
        assert result.total_tokens == 0
        assert result.file_count == 0


class TestDedupAndOrder:
    """Dedup va thu tu."""

    def test_dedup(self, tmp_path, make_tree, scan, aggregator):
        make_tree(tmp_path, {"dirA": {"b.txt": "bee", "c.txt": "see"}})
        tree = scan(tmp_path)
        root = tmp_path.resolve()
        find_item(tree, str(root / "dirA")).checked = True
        find_item(tree, str(root / "dirA" / "b.txt")).checked = True

        result = aggregator.aggregate(get_checked_items(tree), include_header=True)

        assert result.file_count == 2
        assert result.combined_text.count(_header(root / "dirA" / "b.txt")) == 1

    def test_thu_tu_khong_phu_thuoc_completion(self, tmp_path, make_tree, scan):
        make_tree(tmp_path, {"a.txt": "slow", "b.txt": "fast", "c.txt": "fast"})
        tree = scan(tmp_path)
        tree.checked = True

        class SlowFirst:
            def estimate(self, text):
                if text == "slow":
                    time.sleep(0.2)
                return 1

        service = TokenizationService(estimator=SlowFirst())
        with ThreadPoolExecutor(max_workers=3) as executor:
            result = Aggregator(service, executor=executor).aggregate_tree(
                tree, include_header=False
            )

        assert result.combined_text == "slowfastfast"

    def test_determinism(self, tmp_path, make_tree, scan, aggregator):
        make_tree(
            tmp_path,
            {"src": {"m.py": "import os", "a.py": "x = 1"}, "README.md": "# Title"},
        )
        tree = scan(tmp_path)
        tree.checked = True

        first = aggregator.aggregate_tree(tree)
        second = aggregator.aggregate_tree(tree)

        assert first == second


class TestLimits:
    """Size limit va truncation."""

    def test_truncated(self, tmp_path, make_tree, scan, tokenization):
        make_tree(tmp_path, {"big.txt": "hello world again"})
        tree = scan(tmp_path)
        tree.checked = True

        result = Aggregator(tokenization, max_file_bytes=5).aggregate_tree(
            tree, include_header=False
        )

        assert result.combined_text == "hello"
        assert result.total_tokens == 1
        assert len(result.per_file_errors) == 1
        error = result.per_file_errors[0].error
        assert isinstance(error, Truncated)
        assert error.limit == 5


class TestTokenCacheSharing:
    """Aggregation va badge counts dung chung cache."""

    def test_ket_qua_duoc_cache(self, tmp_path, make_tree, scan, tokenization, aggregator):
        make_tree(tmp_path, {"a.txt": "hello world"})
        tree = scan(tmp_path)
        tree.checked = True

        aggregator.aggregate_tree(tree)

        entry = tokenization.peek_file_tokens(tmp_path.resolve() / "a.txt")
        assert entry.state is CacheState.READY
        assert entry.count == 2

    def test_file_thay_doi_thi_tinh_lai(self, tmp_path, make_tree, scan, aggregator):
        make_tree(tmp_path, {"a.txt": "hello world"})
        tree = scan(tmp_path)
        tree.checked = True
        assert aggregator.aggregate_tree(tree).total_tokens == 2

        (tmp_path / "a.txt").write_text("one two three four", encoding="utf-8")

        assert aggregator.aggregate_tree(tree).total_tokens == 4


class TestPolicyReapplied:
    def test_policy_loc_descendants(self, tmp_path, make_tree, scan, tokenization):
        make_tree(tmp_path, {"src": {"a.py": "a", "gen.py": "g"}})
        tree = scan(tmp_path)
        tree.checked = True

        class NoGenerated(DefaultExclusionPolicy):
            def include(self, entry):
                return entry.name != "gen.py" and super().include(entry)

        result = Aggregator(tokenization, policy=NoGenerated()).aggregate_tree(
            tree, include_header=False
        )
        assert result.combined_text == "a"


class TestRelativePaths:
    def test_header_relative(self, tmp_path, make_tree, scan, tokenization):
        make_tree(tmp_path, {"src": {"a.py": "x"}})
        tree = scan(tmp_path)
        tree.checked = True

        result = Aggregator(
            tokenization, workspace_root=tmp_path, use_relative_paths=True
        ).aggregate_tree(tree)

        assert "\n\n--- File: src/a.py ---\n\n" in result.combined_text


class TestCancellation:
    """Cancellation giua cac files."""

    def test_cancel_truoc_khi_bat_dau(self, tmp_path, make_tree, scan, aggregator):
        make_tree(tmp_path, {"a.txt": "x"})
        tree = scan(tmp_path)
        tree.checked = True
        token = CancelToken()
        token.cancel()

        with pytest.raises(Cancelled):
            aggregator.aggregate_tree(tree, cancel_token=token)

    def test_cancel_giua_chung(self, tmp_path, make_tree, scan):
        make_tree(tmp_path, {f"f{i}.txt": f"content {i}" for i in range(6)})
        tree = scan(tmp_path)
        tree.checked = True
        token = CancelToken()
        calls = []
        lock = threading.Lock()

        class CancelOnFirst:
            def estimate(self, text):
                with lock:
                    calls.append(text)
                token.cancel()
                return 1

        service = TokenizationService(estimator=CancelOnFirst())
        aggregator = Aggregator(service, max_workers=1)

        with pytest.raises(Cancelled):
            aggregator.aggregate_tree(tree, cancel_token=token)

        # Worker duy nhat dung lai sau file dau tien
        assert len(calls) == 1
