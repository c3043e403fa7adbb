"""
Database module - PostgreSQL readiness and health.

Uses SQLAlchemy with psycopg2; schema changes are left to Django migrations.
"""

from entrypoint.db import postgres

__all__ = ["postgres"]
