"""yearbar — how far along the current year is, kept live in your terminal."""

__version__ = "1.0.0"
