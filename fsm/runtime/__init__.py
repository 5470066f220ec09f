"""
Runtime package for concurrency primitives used by the machine.
"""

from .concurrency import ReadWriteLock

__all__ = ["ReadWriteLock"]
