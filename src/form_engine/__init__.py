"""Schema-driven dynamic form engine."""

__version__ = "0.1.0"
