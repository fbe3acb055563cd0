"""Adapters layer - Concrete implementations of ports.

This module contains implementations of the port interfaces,
connecting the application to external systems like:
- Snapshot storage (JSON file, in-memory)
- Departure storage (in-memory repository)
"""
