"""Route Modules: one file per record type.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Routes never contain query planning (delegate to RangeQueryResolver)

Design Decisions:
    - Explicit registration in main.py over auto-discovery
"""
