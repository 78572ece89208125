"""
Story Registry - single-authority registry of content-backed story tokens.

Mints, transfers, burns and updates unique story records while enforcing
ownership, metadata validation and per-caller mint quotas.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
