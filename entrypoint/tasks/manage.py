"""
Django management command wrappers.

Each wrapper shells out to `manage.py`; the Django project itself is never
imported into this process.
"""
import logging
import os
import subprocess
from typing import Optional

from entrypoint.config import Settings, get_settings
from entrypoint.schemas import StepResult


log = logging.getLogger(__name__)


class ManagementCommandError(RuntimeError):
    """Raised when a required manage.py command exits non-zero."""

    def __init__(self, command: list[str], returncode: int):
        self.command = command
        self.returncode = returncode
        super().__init__(
            f"Command {' '.join(command)!r} failed with exit status {returncode}"
        )


def build_command(settings: Settings, *args: str) -> list[str]:
    return [settings.PYTHON_EXECUTABLE, settings.MANAGE_PY, *args]


def run_manage_command(
    settings: Optional[Settings] = None,
    *args: str,
    env: Optional[dict[str, str]] = None,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run a manage.py command, streaming its output to ours.

    Args:
        settings: Settings to take the interpreter and manage.py path from
        *args: Command name and arguments, e.g. ("migrate", "--noinput")
        env: Extra environment variables for the child
        check: Raise ManagementCommandError on a non-zero exit

    Returns:
        The completed process
    """
    settings = settings or get_settings()
    command = build_command(settings, *args)

    child_env = dict(os.environ)
    if env:
        child_env.update(env)

    log.info(f"Running {' '.join(args)}")
    result = subprocess.run(command, env=child_env, check=False)

    if check and result.returncode != 0:
        raise ManagementCommandError(command, result.returncode)
    return result


def migrate(settings: Optional[Settings] = None) -> StepResult:
    """Apply migrations. Failure is fatal."""
    run_manage_command(settings, "migrate", "--noinput")
    return StepResult(name="migrate", status="ok")


def collect_static(settings: Optional[Settings] = None) -> StepResult:
    """Collect static files. Failure is logged and tolerated."""
    try:
        result = run_manage_command(settings, "collectstatic", "--noinput", check=False)
    except OSError as e:
        log.warning(f"collectstatic could not be started: {e}")
        return StepResult(name="collectstatic", status="failed", detail=str(e))

    if result.returncode != 0:
        detail = f"exit status {result.returncode}"
        log.warning(f"collectstatic failed ({detail}), continuing")
        return StepResult(name="collectstatic", status="failed", detail=detail)
    return StepResult(name="collectstatic", status="ok")


def create_superuser(settings: Optional[Settings] = None) -> StepResult:
    """
    Create the admin account from DJANGO_SUPERUSER_* variables.

    Skipped when username or password is missing. A non-zero exit, most often
    because the user already exists, is logged and tolerated.
    """
    settings = settings or get_settings()
    if not settings.superuser_configured:
        log.info("Superuser credentials not set, skipping createsuperuser")
        return StepResult(
            name="createsuperuser",
            status="skipped",
            detail="DJANGO_SUPERUSER_USERNAME/PASSWORD not set",
        )

    env = {
        "DJANGO_SUPERUSER_USERNAME": settings.DJANGO_SUPERUSER_USERNAME,
        "DJANGO_SUPERUSER_PASSWORD": settings.DJANGO_SUPERUSER_PASSWORD.get_secret_value(),
    }
    if settings.DJANGO_SUPERUSER_EMAIL:
        env["DJANGO_SUPERUSER_EMAIL"] = settings.DJANGO_SUPERUSER_EMAIL

    try:
        result = run_manage_command(settings, "createsuperuser", "--noinput", env=env, check=False)
    except OSError as e:
        log.warning(f"createsuperuser could not be started: {e}")
        return StepResult(name="createsuperuser", status="failed", detail=str(e))

    if result.returncode != 0:
        detail = f"exit status {result.returncode}"
        log.warning(
            f"createsuperuser failed for {settings.DJANGO_SUPERUSER_USERNAME!r} "
            f"({detail}); the account may already exist"
        )
        return StepResult(name="createsuperuser", status="failed", detail=detail)

    log.info(f"Superuser {settings.DJANGO_SUPERUSER_USERNAME!r} created")
    return StepResult(name="createsuperuser", status="ok")
