"""Poll-based chat backend: participants, messages and presence over MongoDB."""

__version__ = '1.0.0'
