"""
Futures ledger: oracle-fed prices, fixed-expiry futures contracts and
2x-leveraged long/short positions collateralized in a fungible token.
"""
__version__ = "0.1.0"
