"""Holder and supply providers."""

from .analyzer import HolderAnalyzer
from .explorer import ExplorerHolderProvider
from .helius import HeliusHolderProvider
from .moralis import MoralisHolderProvider

__all__ = [
    "HolderAnalyzer",
    "ExplorerHolderProvider",
    "HeliusHolderProvider",
    "MoralisHolderProvider",
]
