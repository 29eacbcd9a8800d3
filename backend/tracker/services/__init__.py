"""Service Layer: async orchestration around the pure core.

Invariants:
    - Services await the store; core functions do the thinking

Design Decisions:
    - The range query engine is the only service: CRUD goes straight to the store
"""
