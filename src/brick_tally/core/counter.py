"""Clamped found-quantity arithmetic.

Out-of-range deltas are clamped silently, never rejected.
"""


def next_value(current: int, delta: int, maximum: int) -> int:
    """Return ``current + delta`` clamped to ``[0, maximum]``."""
    return max(0, min(current + delta, maximum))


def clear_delta(current: int) -> int:
    """Delta that takes an item back to zero found."""
    return -current


def complete_delta(current: int, maximum: int) -> int:
    """Delta that takes an item straight to fully found."""
    return maximum - current
