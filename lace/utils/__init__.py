"""Shared helpers (logging, naming)."""
