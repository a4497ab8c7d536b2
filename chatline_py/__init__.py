"""chatline - streaming chat transcript client."""

__version__ = "0.1.0"
