"""
Shared fixtures: isolated settings and fakes for child processes.
"""
import logging
import subprocess

import pytest

from entrypoint.config import Settings, get_settings, reload_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Start every test from defaults, without a stray .env or CI variables."""
    monkeypatch.chdir(tmp_path)
    for name in Settings.model_fields:
        monkeypatch.delenv(name, raising=False)
    # Settings are loaded lazily so a test can set env vars before the first read
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """The CLI reconfigures the root logger; undo that after each test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings(monkeypatch):
    """Settings with a fast readiness loop and a fake interpreter."""
    monkeypatch.setenv("DB_NAME", "backend")
    monkeypatch.setenv("DB_USERNAME", "backend")
    monkeypatch.setenv("DB_PASSWORD", "s3cret")
    monkeypatch.setenv("DB_HOST", "db")
    monkeypatch.setenv("DB_PORT", "5432")
    monkeypatch.setenv("DB_WAIT_ATTEMPTS", "3")
    monkeypatch.setenv("DB_WAIT_INTERVAL_SECONDS", "2")
    monkeypatch.setenv("PYTHON_EXECUTABLE", "/usr/bin/python3")
    return reload_settings()


class FakeRun:
    """Stands in for subprocess.run and records every call."""

    def __init__(self, returncodes=None):
        self.returncodes = returncodes or {}
        self.calls = []

    def __call__(self, command, env=None, check=False):
        self.calls.append({"command": command, "env": env})
        subcommand = command[2] if len(command) > 2 else None
        code = self.returncodes.get(subcommand, 0)
        if isinstance(code, BaseException):
            raise code
        return subprocess.CompletedProcess(command, code)

    @property
    def subcommands(self):
        return [call["command"][2] for call in self.calls]


@pytest.fixture
def fake_run(monkeypatch):
    """Patch subprocess.run inside the manage module; configure via .returncodes."""
    fake = FakeRun()
    monkeypatch.setattr("entrypoint.tasks.manage.subprocess.run", fake)
    return fake


class FlakyConnection:
    """Fails the first `failures` probes, then succeeds."""

    def __init__(self, failures):
        self.failures = failures
        self.calls = 0

    def __call__(self, engine):
        from sqlalchemy.exc import OperationalError

        self.calls += 1
        if self.calls <= self.failures:
            raise OperationalError("SELECT 1", None, Exception("connection refused"))


@pytest.fixture
def flaky_db(monkeypatch):
    """Factory installing a FlakyConnection in place of the real probe."""
    def install(failures):
        probe = FlakyConnection(failures)
        monkeypatch.setattr("entrypoint.db.postgres.check_connection", probe)
        return probe
    return install
