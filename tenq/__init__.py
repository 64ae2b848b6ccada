"""tenq - guided ten-question self-reflection service."""

__version__ = "1.0.0"
