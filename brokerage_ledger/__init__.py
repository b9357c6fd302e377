"""Holding-period brokerage ledger service package."""
