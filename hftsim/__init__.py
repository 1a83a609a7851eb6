"""Futures market data types, configuration readers, a position ledger and a tick-driven order matching simulator."""

__version__ = "0.1.0"