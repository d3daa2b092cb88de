"""Repositories — the only access points to the store."""
