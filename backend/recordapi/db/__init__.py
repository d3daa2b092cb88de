"""Database Infrastructure — declarative Base for the ORM models.

Invariants:
    - All sessions are async (AsyncSession)
"""
