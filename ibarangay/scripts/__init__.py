"""Operational scripts (database setup, scheduled workers)."""
