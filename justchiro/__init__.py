"""Just Chiropractor directory and blog API."""

__version__ = "1.0.0"
