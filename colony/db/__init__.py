"""Persistence — room state save/restore in Redis."""
