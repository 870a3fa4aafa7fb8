"""Single source of truth for the Extra Info Bar plugin version."""

__version__ = "0.4.0"
