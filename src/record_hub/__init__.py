"""
RecordHub - Record resolution engine.

Loads fully materialized record objects for (source, id) requests by
consulting the record cache, the search backend and per-source fallback
loaders, preserving the caller's requested order.
"""

__version__ = "0.1.0"
