"""Rule Hub - AI-assistant coding rule catalog and package generator."""

__version__ = "0.1.0"
