"""Named workspace profiles applied in one command."""

__version__ = "0.1.0"
