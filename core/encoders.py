"""
Encoders - Token estimation strategies (pluggable).

Contract cua moi estimator: estimate(text) -> int
- Pure, deterministic
- Total: khong raise voi binary/empty input (bytes duoc decode voi replacement)
- Empty input -> 0

Strategies:
- WordSplitEstimator: Split theo whitespace + punctuation, dem segments (default, offline)
- TiktokenEstimator: Dem BPE tokens voi tiktoken (opt-in), fallback ve WordSplitEstimator

Functions:
- get_estimator(): Factory theo ten strategy
"""

import re
import threading
from typing import Any, Optional, Protocol, Union, runtime_checkable

import tiktoken

from core.logging_config import log_error, log_info, log_warning

TextLike = Union[str, bytes]

# Whitespace runs hoac mot ky tu punctuation trong tap co dinh
_SPLIT_PATTERN = re.compile(r"\s+|[.,!?;:()\[\]{}<>]")

DEFAULT_ESTIMATOR = "default"
TIKTOKEN_ESTIMATOR = "tiktoken"
DEFAULT_TIKTOKEN_ENCODING = "o200k_base"


def _as_text(text: TextLike) -> str:
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="replace")
    return text


@runtime_checkable
class TokenEstimator(Protocol):
    """Strategy interface: text -> approximate token count."""

    def estimate(self, text: TextLike) -> int: ...


class WordSplitEstimator:
    """
    Uoc luong token bang cach split text theo whitespace va punctuation.

    Vi du: "hello world" -> 2, "a.b(c)" -> 3.
    Monotonic va deterministic, khong chinh xac ve ngon ngu hoc.
    """

    name = DEFAULT_ESTIMATOR

    def estimate(self, text: TextLike) -> int:
        content = _as_text(text)
        if not content:
            return 0
        return sum(1 for segment in _SPLIT_PATTERN.split(content) if segment)


class TiktokenEstimator:
    """
    Dem token bang tiktoken encoding (vd: o200k_base, cl100k_base).

    Encoder duoc lazy-load (thread-safe). Neu khong load duoc
    (offline, encoding khong ton tai), fallback ve WordSplitEstimator
    va emit warning MOT LAN.
    """

    name = TIKTOKEN_ESTIMATOR

    def __init__(self, encoding_name: str = DEFAULT_TIKTOKEN_ENCODING):
        self.encoding_name = encoding_name
        self._encoder: Optional[Any] = None
        self._load_failed = False
        self._lock = threading.Lock()
        self._fallback = WordSplitEstimator()

    def _get_encoder(self) -> Optional[Any]:
        if self._encoder is not None or self._load_failed:
            return self._encoder

        with self._lock:
            if self._encoder is None and not self._load_failed:
                try:
                    self._encoder = tiktoken.get_encoding(self.encoding_name)
                    log_info(f"[Encoders] Using tiktoken encoding {self.encoding_name}")
                except Exception as e:
                    self._load_failed = True
                    log_warning(
                        f"[Encoders] Cannot load tiktoken encoding {self.encoding_name} ({e}), "
                        "falling back to word-split estimation"
                    )
        return self._encoder

    @property
    def using_fallback(self) -> bool:
        return self._load_failed

    def estimate(self, text: TextLike) -> int:
        content = _as_text(text)
        if not content:
            return 0

        encoder = self._get_encoder()
        if encoder is None:
            return self._fallback.estimate(content)

        try:
            # disallowed_special=() de special tokens trong source khong raise
            return len(encoder.encode(content, disallowed_special=()))
        except Exception as e:
            log_error("[Encoders] tiktoken encode failed, using fallback", e)
            return self._fallback.estimate(content)


def get_estimator(
    name: str = DEFAULT_ESTIMATOR,
    tiktoken_encoding: str = DEFAULT_TIKTOKEN_ENCODING,
) -> TokenEstimator:
    """
    Factory tao estimator theo ten.

    Args:
        name: "default" hoac "tiktoken"
        tiktoken_encoding: Encoding cho TiktokenEstimator

    Returns:
        TokenEstimator instance

    Raises:
        ValueError: Neu ten strategy khong ho tro
    """
    key = (name or DEFAULT_ESTIMATOR).lower()
    if key == DEFAULT_ESTIMATOR:
        return WordSplitEstimator()
    if key == TIKTOKEN_ESTIMATOR:
        return TiktokenEstimator(tiktoken_encoding)
    raise ValueError(
        f"Unknown estimator '{name}'. Valid: {DEFAULT_ESTIMATOR}, {TIKTOKEN_ESTIMATOR}"
    )
