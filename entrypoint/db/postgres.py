"""
PostgreSQL connectivity: readiness polling and health checks.
"""
import logging
import time
from typing import Any, Callable, Optional

from sqlalchemy import create_engine, func, inspect, select, table, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from entrypoint.config import Settings, get_settings


log = logging.getLogger(__name__)

MIGRATIONS_TABLE = "django_migrations"
SERVER_VERSION_QUERY = "SHOW server_version"


class DatabaseUnavailableError(RuntimeError):
    """Raised when the database never answered within the attempt bound."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        message = f"Database not reachable after {attempts} attempt(s)"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)


def get_engine(settings: Optional[Settings] = None) -> Engine:
    """
    Build a short-lived engine for probing the database.

    No connection is pooled; each probe opens a fresh one.
    """
    settings = settings or get_settings()
    return create_engine(
        settings.database_url,
        poolclass=NullPool,
        connect_args={"connect_timeout": settings.DB_CONNECT_TIMEOUT},
        echo=False,
    )


def check_connection(engine: Engine) -> None:
    """Open a connection and run a trivial query; raises on failure."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def wait_for_database(
    settings: Optional[Settings] = None,
    sleep: Optional[Callable[[float], Any]] = None,
) -> int:
    """
    Poll the database until it accepts connections.

    Makes at most DB_WAIT_ATTEMPTS attempts with a fixed DB_WAIT_INTERVAL_SECONDS
    pause after each failure.

    Returns:
        Number of attempts it took

    Raises:
        DatabaseUnavailableError: every attempt failed
    """
    settings = settings or get_settings()
    sleep = sleep or time.sleep
    attempts = settings.DB_WAIT_ATTEMPTS

    def _log_failure(retry_state) -> None:
        if retry_state.outcome is not None and retry_state.outcome.failed:
            log.warning(
                f"Database not ready ({retry_state.attempt_number}/{attempts}): "
                f"{retry_state.outcome.exception()}"
            )

    log.info(
        f"Waiting for database connection  host={settings.DB_HOST}:{settings.DB_PORT}  "
        f"db={settings.DB_NAME}  attempts={attempts}  "
        f"interval={settings.DB_WAIT_INTERVAL_SECONDS}s"
    )

    engine = get_engine(settings)
    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(settings.DB_WAIT_INTERVAL_SECONDS),
        retry=retry_if_exception_type((SQLAlchemyError, OSError)),
        after=_log_failure,
        sleep=sleep,
    )

    try:
        for attempt in retrying:
            with attempt:
                check_connection(engine)
            if not attempt.retry_state.outcome.failed:
                log.info("Database is ready!")
                return attempt.retry_state.attempt_number
    except RetryError as e:
        last_error = e.last_attempt.exception()
        log.error("Database not reachable, exiting.")
        raise DatabaseUnavailableError(attempts, last_error) from last_error
    finally:
        engine.dispose()


def check_db_health(settings: Optional[Settings] = None) -> dict[str, Any]:
    """
    Check database connectivity and report basic facts.

    Returns:
        Dict with status, server version and applied migration count
        (None when Django has not migrated yet)
    """
    settings = settings or get_settings()
    engine = get_engine(settings)
    try:
        with engine.connect() as conn:
            version = conn.execute(text(SERVER_VERSION_QUERY)).scalar()

            applied = None
            if inspect(conn).has_table(MIGRATIONS_TABLE):
                applied = conn.execute(
                    select(func.count()).select_from(table(MIGRATIONS_TABLE))
                ).scalar()

            return {
                "status": "healthy",
                "server_version": version,
                "applied_migrations": applied,
            }
    except SQLAlchemyError as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }
    finally:
        engine.dispose()
