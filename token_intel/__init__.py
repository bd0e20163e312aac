"""Token Intelligence Aggregation Engine.

Aggregates DEX, bonding-curve and holder data for a token into one
canonical record, classifies its lifecycle stage, and scores its
safety and holder-concentration risk.
"""

__version__ = "0.1.0"
