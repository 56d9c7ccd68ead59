"""tabboard: a start page that keeps bookmark shortcuts in sections and folders."""

__version__ = "0.1.0"
