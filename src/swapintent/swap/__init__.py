"""Swap execution."""

from swapintent.swap.executor import SwapExecutor, create_swap_executor

__all__ = [
    "SwapExecutor",
    "create_swap_executor",
]
