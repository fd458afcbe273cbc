"""Database Infrastructure — SQLAlchemy Base.

Invariants:
    - Single async engine per process (initialized via init_db)
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL (native async, SELECT ... FOR UPDATE honoured)
    - aiosqlite in tests: row locks are no-ops there, the in-process sequence
      lock still serializes allocations
"""
