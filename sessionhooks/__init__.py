"""Hook execution engine for interactive coding-assistant sessions."""

__version__ = "0.1.0"
