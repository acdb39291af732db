"""A fantasy tavern chat server over TCP."""

__version__ = "0.1.0"
__all__ = ["common", "npcs", "parser", "server"]