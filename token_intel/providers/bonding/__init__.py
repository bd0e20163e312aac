"""Bonding-curve launch platform providers."""

from .fourmeme import FourMemeProvider
from .pumpfun import PumpFunProvider

__all__ = ["FourMemeProvider", "PumpFunProvider"]
