"""Utility modules for swapintent."""

from swapintent.utils.clock import Clock, SystemClock

__all__ = [
    "Clock",
    "SystemClock",
]
