"""Command-line interface for ccguard."""
