"""InstaSafar booking search: listings, filters, comparison, and per-user state."""

__version__ = "0.1.0"
