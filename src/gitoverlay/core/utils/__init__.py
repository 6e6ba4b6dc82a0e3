"""Shared utilities (I/O, merging, user paths, logging)."""
