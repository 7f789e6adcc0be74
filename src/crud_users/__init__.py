"""CRUD users service.

HTTP API over a single users table, with a forward-only SQL migration runner
and a database health check.
"""

__version__ = "0.1.0"
