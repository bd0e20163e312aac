"""DEX pool/pair data providers."""

from .dexscreener import DexScreenerProvider, select_main_pair

__all__ = ["DexScreenerProvider", "select_main_pair"]
