"""Data stores for persistence and caching.

Stores handle:
- Notion: remote document database (REST)
- Cache: per-category snapshots, in-flight load markers

No entry mapping or view logic in stores - that belongs in services.
"""
