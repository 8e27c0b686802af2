"""Human-readable interval labels for review buttons."""

from __future__ import annotations


def format_interval(days: float) -> str:
    """Format an interval in days as a short label.

    Examples: 0.0069 -> "10m", 0.25 -> "6h", 3 -> "3d", 60 -> "2mo", 400 -> "1.1y"
    """
    if days < 1:
        minutes = round(days * 24 * 60)
        if minutes < 60:
            return f"{minutes}m"
        return f"{round(minutes / 60)}h"
    if days < 30:
        return f"{round(days)}d"
    if days < 365:
        return f"{round(days / 30)}mo"
    return f"{days / 365:.1f}y"
