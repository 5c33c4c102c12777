"""swapintent - intent-based token swaps over 1inch Fusion, Fusion+ and the order book."""

__version__ = "0.1.0"
