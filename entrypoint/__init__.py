"""
Container entrypoint for the Django backend.

Waits for PostgreSQL, applies migrations, collects static files, optionally
bootstraps an admin account, then hands the process over to the app server.
"""

__version__ = "1.0.0"
