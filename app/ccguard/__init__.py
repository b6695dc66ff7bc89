"""ccguard - keep a chosen CapCut version and stop silent auto-updates."""

__version__ = "0.3.0"
