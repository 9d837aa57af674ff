"""Project tracker: SQLite data access, aggregation service, text menu and HTTP API."""

__version__ = "0.1.0"
