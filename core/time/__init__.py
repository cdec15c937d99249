"""
Storefront Core Time — Public API
===================================
Explicit clock protocol.
"""

from core.time.clock import Clock, FixedClock, SystemClock

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
]
