"""Top-level package for the travel-ops back-office core.

This package keeps a package's departures (operational groups) in step
with its flight schedule, and upgrades persisted snapshots through a
versioned migration pipeline before any domain code reads them.
"""
