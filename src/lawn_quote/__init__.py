"""
Lawn Quote Package

Lawn-care quoting: tiered square-footage pricing with per-account
configuration, quote snapshots for audit, and lead forwarding.
"""

__version__ = "1.0.0"
