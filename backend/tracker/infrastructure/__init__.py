"""Infrastructure Layer: database sessions, the SQL record store, logging.

Invariants:
    - Store failures leave this layer as StoreError subclasses, never SQLAlchemyError

Design Decisions:
    - The record store implements core/repository_protocols.py structurally
"""
