"""
Utility functions module.

Time handling shared by the trade models and the transport boundary.
Trade timestamps are always UTC-aware; naive input is read as UTC.
"""
