"""Core Layer — errors, envelopes, validation, rate limiting.

Invariants:
    - No module in core/ imports from services/, repositories/, api/ or infrastructure/
    - No database access
"""
