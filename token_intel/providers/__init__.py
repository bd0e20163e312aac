"""Data providers for the token intelligence engine.

This module contains providers for:
- DEX pool/pair market data (DexScreener)
- Bonding-curve progress (Pump.fun, Four.meme)
- Holder and supply data (Helius, Moralis, block explorer)
"""

from .base import BaseProvider, HolderProvider, MarketDataProvider, ProviderResult

__all__ = ["BaseProvider", "HolderProvider", "MarketDataProvider", "ProviderResult"]
