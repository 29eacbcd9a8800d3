"""Database Package: SQLAlchemy declarative Base.

Invariants:
    - Single async engine per process (initialized via init_db)

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite for tests
"""
