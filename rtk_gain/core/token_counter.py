"""
Token counting and savings accounting.

Estimates token counts from raw text and derives savings figures.
"""

import math
from dataclasses import dataclass
from typing import Union

BYTES_PER_TOKEN = 4


def estimate_tokens(text: Union[str, bytes]) -> int:
    """Estimate tokens for a piece of command output.

    Approximation only: roughly four bytes of UTF-8 per token, rounded up.

    Args:
        text: Output text (str is measured as UTF-8 bytes)

    Returns:
        Estimated token count
    """
    if isinstance(text, str):
        text = text.encode("utf-8")
    return math.ceil(len(text) / BYTES_PER_TOKEN)


def savings_percent(saved_tokens: int, input_tokens: int) -> float:
    """Percentage of input tokens saved, 0.0 when there was no input."""
    if input_tokens > 0:
        return saved_tokens / input_tokens * 100.0
    return 0.0


@dataclass(frozen=True)
class TokenUsage:
    """Token counts for one tracked command.

    input_tokens is the baseline estimate (what the unoptimized command
    would have produced); output_tokens is what was actually emitted.
    """
    input_tokens: int
    output_tokens: int

    def __post_init__(self):
        """Validate token counts are non-negative."""
        if self.input_tokens < 0:
            raise ValueError("input_tokens cannot be negative")
        if self.output_tokens < 0:
            raise ValueError("output_tokens cannot be negative")

    @property
    def saved_tokens(self) -> int:
        """Tokens saved, never below zero."""
        return max(0, self.input_tokens - self.output_tokens)

    @property
    def savings_pct(self) -> float:
        """Saved tokens as a percentage of input tokens."""
        return savings_percent(self.saved_tokens, self.input_tokens)
