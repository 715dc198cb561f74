"""ELS vocabulary and grammar quiz engine."""
__version__ = "0.1.0"
