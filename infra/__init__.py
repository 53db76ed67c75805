"""
Infrastructure module exports.

Bootstrap for all relay components.
"""

from .bootstrap import RelayBootstrap

__all__ = [
    "RelayBootstrap",
]
