"""Plain-text and structured JSON loggers with level filtering and trace-context enrichment."""

__version__ = "0.1.0"