"""Filter URL lists by matching URL components against regular expressions."""

__version__ = "0.1.0"
