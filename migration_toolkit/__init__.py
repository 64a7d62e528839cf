"""
Content Migration Toolkit

Moves structured content between environments of a headless CMS through
its Management API.

Supports:
- Export of requested language variants with their referenced items and assets
- A portable, codename-based migration package
- Idempotent import that creates or updates assets, items and variants
- Workflow state replay (publish, archive, regular steps)
"""

__version__ = "0.1.0"
