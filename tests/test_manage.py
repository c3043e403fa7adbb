"""
Tests for the manage.py command wrappers.
"""
import pytest

from entrypoint.config import reload_settings
from entrypoint.tasks.manage import (
    ManagementCommandError,
    build_command,
    collect_static,
    create_superuser,
    migrate,
    run_manage_command,
)


def test_build_command(settings):
    assert build_command(settings, "migrate", "--noinput") == [
        "/usr/bin/python3", "manage.py", "migrate", "--noinput",
    ]


def test_custom_manage_py_path(monkeypatch, fake_run):
    monkeypatch.setenv("MANAGE_PY", "/app/src/manage.py")
    settings = reload_settings()

    run_manage_command(settings, "check")

    assert fake_run.calls[0]["command"][1] == "/app/src/manage.py"


def test_child_inherits_environment(settings, fake_run, monkeypatch):
    monkeypatch.setenv("DJANGO_SETTINGS_MODULE", "config.settings.prod")

    run_manage_command(settings, "check", env={"EXTRA": "1"})

    env = fake_run.calls[0]["env"]
    assert env["DJANGO_SETTINGS_MODULE"] == "config.settings.prod"
    assert env["EXTRA"] == "1"


def test_nonzero_exit_raises_when_checked(settings, fake_run):
    fake_run.returncodes["check"] = 3

    with pytest.raises(ManagementCommandError) as exc_info:
        run_manage_command(settings, "check")

    assert exc_info.value.returncode == 3
    assert exc_info.value.command[-1] == "check"


def test_nonzero_exit_returned_when_unchecked(settings, fake_run):
    fake_run.returncodes["check"] = 3

    result = run_manage_command(settings, "check", check=False)
    assert result.returncode == 3


def test_migrate_runs_noinput(settings, fake_run):
    result = migrate(settings)

    assert result.status == "ok"
    assert fake_run.calls[0]["command"][2:] == ["migrate", "--noinput"]


def test_migrate_failure_is_fatal(settings, fake_run):
    fake_run.returncodes["migrate"] = 1

    with pytest.raises(ManagementCommandError):
        migrate(settings)


def test_collectstatic_success(settings, fake_run):
    result = collect_static(settings)

    assert result.status == "ok"
    assert fake_run.calls[0]["command"][2:] == ["collectstatic", "--noinput"]


def test_collectstatic_failure_tolerated(settings, fake_run):
    fake_run.returncodes["collectstatic"] = 1

    result = collect_static(settings)

    assert result.status == "failed"
    assert result.detail == "exit status 1"


def test_collectstatic_missing_interpreter_tolerated(settings, fake_run):
    fake_run.returncodes["collectstatic"] = FileNotFoundError("no such file")

    result = collect_static(settings)

    assert result.status == "failed"
    assert "no such file" in result.detail


def test_superuser_skipped_without_credentials(settings, fake_run):
    result = create_superuser(settings)

    assert result.status == "skipped"
    assert fake_run.calls == []


def test_superuser_created_with_env(settings, fake_run, monkeypatch):
    monkeypatch.setenv("DJANGO_SUPERUSER_USERNAME", "admin")
    monkeypatch.setenv("DJANGO_SUPERUSER_PASSWORD", "changeme")
    monkeypatch.setenv("DJANGO_SUPERUSER_EMAIL", "admin@example.com")
    settings = reload_settings()

    result = create_superuser(settings)

    assert result.status == "ok"
    call = fake_run.calls[0]
    assert call["command"][2:] == ["createsuperuser", "--noinput"]
    assert call["env"]["DJANGO_SUPERUSER_USERNAME"] == "admin"
    assert call["env"]["DJANGO_SUPERUSER_PASSWORD"] == "changeme"
    assert call["env"]["DJANGO_SUPERUSER_EMAIL"] == "admin@example.com"


def test_superuser_existing_account_tolerated(settings, fake_run, monkeypatch):
    monkeypatch.setenv("DJANGO_SUPERUSER_USERNAME", "admin")
    monkeypatch.setenv("DJANGO_SUPERUSER_PASSWORD", "changeme")
    settings = reload_settings()
    fake_run.returncodes["createsuperuser"] = 1

    result = create_superuser(settings)

    assert result.status == "failed"
    assert result.detail == "exit status 1"


def test_superuser_empty_password_skipped(settings, fake_run, monkeypatch):
    monkeypatch.setenv("DJANGO_SUPERUSER_USERNAME", "admin")
    monkeypatch.setenv("DJANGO_SUPERUSER_PASSWORD", "")
    settings = reload_settings()

    result = create_superuser(settings)

    assert result.status == "skipped"
    assert fake_run.calls == []
