"""
Infrastructure layer for RecordHub.

Components:
- records: record loading (cache, search backend and fallback tiers)
- settings: YAML-backed configuration schemas
"""
