"""
Container entrypoint CLI.

Usage:
    django-entrypoint run -- gunicorn config.wsgi   # Full startup, then exec the server
    django-entrypoint wait-db                       # Wait for PostgreSQL only
    django-entrypoint migrate                       # Apply migrations
    django-entrypoint collectstatic                 # Collect static files
    django-entrypoint create-superuser              # Create the admin account
    django-entrypoint health                        # Check configuration and database
    django-entrypoint config                        # Show settings (secrets masked)
    django-entrypoint image-tag                     # Print image references for CI
"""
import logging
import sys
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from entrypoint.config import get_settings
from entrypoint.db.postgres import DatabaseUnavailableError, check_db_health, wait_for_database
from entrypoint.images import build_image_tags
from entrypoint.schemas import HealthStatus
from entrypoint.tasks.manage import ManagementCommandError, collect_static, create_superuser, migrate
from entrypoint.tasks.startup import exec_command, resolve_command, run_startup


log = logging.getLogger("entrypoint")

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s  %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level   = level,
        format  = LOG_FORMAT,
        datefmt = LOG_DATEFMT,
        force   = True,
    )


def print_header(text: str):
    """Banner above the health and config reports."""
    rule = "=" * 60
    print(f"\n{rule}\n  {text}\n{rule}\n")


def print_status(key: str, value: Any, indent: int = 0):
    """One aligned `key: value` row of a report."""
    print(f"{'  ' * indent}{key:30s}: {value}")


def cmd_run(args: Sequence[str]) -> int:
    """Run the startup sequence, then hand over to the given command."""
    settings = get_settings()
    command = resolve_command(args)

    log.info("Starting Django application...")
    report = run_startup(settings)
    for step in report.steps:
        suffix = f" ({step.detail})" if step.detail else ""
        log.info(f"  {step.name:16s} {step.status}{suffix}")

    exec_command(command)
    return 0


def cmd_wait_db() -> int:
    """Wait for the database and nothing else."""
    wait_for_database(get_settings())
    return 0


def cmd_migrate() -> int:
    migrate(get_settings())
    return 0


def cmd_collectstatic() -> int:
    result = collect_static(get_settings())
    return 0 if result.status == "ok" else 1


def cmd_create_superuser() -> int:
    result = create_superuser(get_settings())
    if result.status == "skipped":
        print(f"⚠️  Skipped: {result.detail}")
        return 0
    return 0 if result.status == "ok" else 1


def cmd_health() -> int:
    """Check configuration and database health."""
    print_header("Entrypoint Health Check")

    settings = get_settings()

    print("Configuration:")
    print_status("Database", f"{settings.DB_USERNAME}@{settings.DB_HOST}:{settings.DB_PORT}/{settings.DB_NAME}", 1)
    print_status("Database Password", "✓ Set" if settings.DB_PASSWORD else "✗ Not set", 1)
    print_status("Superuser Bootstrap", "✓ Configured" if settings.superuser_configured else "✗ Not configured", 1)
    print_status("Run Migrations", "✓ Yes" if settings.RUN_MIGRATIONS else "✗ No", 1)
    print_status("Collect Static", "✓ Yes" if settings.COLLECT_STATIC else "✗ No", 1)

    print("\nDatabase:")
    health = HealthStatus(**check_db_health(settings))

    if health.status == "healthy":
        print_status("Status", "✓ Healthy", 1)
        print_status("Server Version", health.server_version, 1)
        applied = health.applied_migrations
        print_status("Applied Migrations", applied if applied is not None else "✗ Not migrated", 1)
    else:
        print_status("Status", f"✗ Unhealthy: {health.error}", 1)

    print()
    return 0 if health.status == "healthy" else 1


def cmd_config() -> int:
    """Show effective settings with secrets masked."""
    print_header("Effective Configuration")
    for key, value in get_settings().masked().items():
        print_status(key, value)
    print()
    return 0


def cmd_image_tag() -> int:
    """Print one image reference per line, primary tag first."""
    tags = build_image_tags(get_settings())
    for reference in tags.references:
        print(reference)
    return 0


def print_help():
    """Print help message."""
    print("""
Django container entrypoint

Usage:
    django-entrypoint <command> [options]

Commands:
    run [--] CMD...      Wait for DB, migrate, collect static, create superuser, exec CMD
    wait-db              Wait until the database accepts connections
    migrate              Apply database migrations
    collectstatic        Collect static files
    create-superuser     Create the admin account from DJANGO_SUPERUSER_*
    health               Check configuration and database health
    config               Show effective settings (secrets masked)
    image-tag            Print image references for the current CI build
    help                 Show this help message

Examples:
    django-entrypoint run -- gunicorn config.wsgi:application --bind 0.0.0.0:8000
    django-entrypoint wait-db
    django-entrypoint image-tag
""")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        print_help()
        return 0

    command = argv[0].lower()
    rest = argv[1:]

    try:
        configure_logging(get_settings().log_level)
    except ValidationError as e:
        configure_logging()
        log.error(f"Invalid configuration: {e}")
        return 1

    try:
        if command == "run":
            return cmd_run(rest)
        elif command == "wait-db":
            return cmd_wait_db()
        elif command == "migrate":
            return cmd_migrate()
        elif command == "collectstatic":
            return cmd_collectstatic()
        elif command == "create-superuser":
            return cmd_create_superuser()
        elif command == "health":
            return cmd_health()
        elif command == "config":
            return cmd_config()
        elif command == "image-tag":
            return cmd_image_tag()
        elif command in ("help", "-h", "--help"):
            print_help()
            return 0
        else:
            print(f"Unknown command: {command}")
            print_help()
            return 1
    except DatabaseUnavailableError:
        return 1
    except ManagementCommandError as e:
        log.error(str(e))
        return e.returncode or 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130
    except Exception as e:
        log.error(f"✗ Error: {e}")
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
