"""Formatting utilities for display values."""

import time
from typing import Optional


def progress_percent(found: int, needed: int) -> int:
    """Rounded completion percentage; 0 when nothing is needed."""
    if needed <= 0:
        return 0
    # Integer round-half-up
    return (found * 200 + needed) // (2 * needed)


def format_progress(found: int, needed: int, unit: str = "") -> str:
    """Format 'found/needed (pct%)', optionally with a unit word."""
    counts = f"{found}/{needed}"
    if unit:
        counts += f" {unit}"
    return f"{counts} ({progress_percent(found, needed)}%)"


def format_color_swatch(rgb: str) -> str:
    """Turn a bare hex colour from the catalog into a CSS/Qt colour."""
    rgb = (rgb or "").strip()
    if not rgb:
        return "#cccccc"
    return rgb if rgb.startswith("#") else f"#{rgb}"


def time_ago(ts: float, now: Optional[float] = None) -> str:
    """Human-friendly age of an epoch timestamp (seconds)."""
    now = time.time() if now is None else now
    seconds = int(now - ts)
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days == 1:
        return "yesterday"
    if days < 30:
        return f"{days}d ago"
    return f"{days // 30}mo ago"
