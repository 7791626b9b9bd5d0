"""Self-update support for Python zipapp command line tools."""

__version__ = "0.3.0"
