"""
Wallet Ledger

Transaction amount scaling between integer minor units and per-wallet
decimal amounts, plus description rendering and ordering of ledger
entries. All monetary math is done with Decimal strings, never float.
"""

__version__ = "1.0.0"
