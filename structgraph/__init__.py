"""
Project structure graph engine.

Builds an identity-resolved, deduplicated node/edge graph from scanned project
records, lays it out deterministically and drives an interactive view.
"""

__version__ = "1.0.0"
