"""
Container startup sequence.

Steps run strictly in order:
1. Wait for the database (bounded retries, fatal on exhaustion)
2. Apply migrations (fatal)
3. Collect static files (best effort)
4. Create the superuser (optional, best effort)

After that the caller replaces this process with the application server.
"""
import logging
import os
import sys
from typing import Any, Callable, Optional, Sequence

from entrypoint.config import Settings, get_settings
from entrypoint.db.postgres import wait_for_database
from entrypoint.schemas import StartupReport, StepResult, utc_now
from entrypoint.tasks.manage import collect_static, create_superuser, migrate


log = logging.getLogger(__name__)


def run_startup(
    settings: Optional[Settings] = None,
    sleep: Optional[Callable[[float], Any]] = None,
) -> StartupReport:
    """
    Run every startup step and collect their results.

    Raises:
        DatabaseUnavailableError: the database never came up
        ManagementCommandError: migrations failed
    """
    settings = settings or get_settings()
    report = StartupReport()

    attempts = wait_for_database(settings, sleep=sleep)
    report.steps.append(
        StepResult(name="wait_db", status="ok", detail=f"{attempts} attempt(s)")
    )

    if settings.RUN_MIGRATIONS:
        log.info("Running migrations...")
        report.steps.append(migrate(settings))
    else:
        report.steps.append(StepResult(name="migrate", status="skipped", detail="RUN_MIGRATIONS=false"))

    if settings.COLLECT_STATIC:
        log.info("Collecting static files...")
        report.steps.append(collect_static(settings))
    else:
        report.steps.append(StepResult(name="collectstatic", status="skipped", detail="COLLECT_STATIC=false"))

    report.steps.append(create_superuser(settings))

    report.finished_at = utc_now()
    return report


def resolve_command(args: Sequence[str]) -> list[str]:
    """Strip a leading `--` separator from the command to exec."""
    args = list(args)
    if args and args[0] == "--":
        args = args[1:]
    return args


def exec_command(argv: Sequence[str]) -> None:
    """
    Replace the current process with argv, like `exec "$@"` in a shell.

    Does nothing when argv is empty. Only returns in that case.
    """
    argv = list(argv)
    if not argv:
        log.info("No command given, startup complete")
        return

    log.info(f"Handing over to: {' '.join(argv)}")
    for handler in logging.getLogger().handlers:
        handler.flush()
    sys.stdout.flush()
    sys.stderr.flush()
    os.execvp(argv[0], argv)
