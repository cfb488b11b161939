"""Model of debugging-information types, compile units, struct holes and build ids."""

__version__ = "0.1.0"

__all__ = ["buildid", "cu", "dwarf", "model"]