"""
Error types raised by the engine.

Insufficient or degenerate data never raises; only caller contract
violations do (negative counts, negative amounts, malformed periods).
"""

from __future__ import annotations


class InvalidArgument(ValueError):
    pass
