"""Stall Sync: canonical food stall catalog reconciliation."""

__version__ = "0.1.0"
