"""keyshift — chord transposition and rehearsal tools for a music ministry's song library."""

__version__ = "0.1.0"
