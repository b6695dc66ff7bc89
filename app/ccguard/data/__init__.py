"""Bundled data files (archive catalog)."""
