"""
Trade data module.

Canonical trade models, payload parsing at the transport boundary and
trade invariant validation.
"""
