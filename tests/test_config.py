from datetime import timedelta

import pytest
from pydantic import ValidationError

from certwatch.config import (
    CONFIG_FILE_ENV,
    DEFAULT_DATE_FORMAT,
    DashboardSettings,
    Settings,
)


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    monkeypatch.setenv(CONFIG_FILE_ENV, str(path))
    return path


def test_defaults(config_file):
    settings = Settings()

    assert settings.check_interval == timedelta(minutes=10)
    assert settings.certificates == []
    assert settings.dashboard.warning_threshold == timedelta(days=20)
    assert settings.dashboard.critical_threshold == timedelta(days=3)
    assert settings.dashboard.date_format == DEFAULT_DATE_FORMAT


def test_yaml_file(config_file):
    config_file.write_text(
        "check_interval: PT2M\n"
        "certificates:\n"
        "  - name: svc-a\n"
        "    path: /certs/a.pem\n"
        "    type: pem\n"
        "  - name: store\n"
        "    path: /certs/store.p12\n"
        "    type: PKCS12\n"
        "    password: env:STORE_PW\n"
        "dashboard:\n"
        "  warning_threshold: P10D\n"
    )

    settings = Settings()

    assert settings.check_interval == timedelta(minutes=2)
    assert [c.name for c in settings.certificates] == ["svc-a", "store"]
    assert settings.certificates[0].password is None
    assert settings.certificates[1].password == "env:STORE_PW"
    assert settings.dashboard.warning_threshold == timedelta(days=10)
    assert settings.dashboard.critical_threshold == timedelta(days=3)


def test_environment_overrides_file(config_file, monkeypatch):
    config_file.write_text("check_interval: 600\nscheduler_enabled: true\n")
    monkeypatch.setenv("CERTWATCH_CHECK_INTERVAL", "30")
    monkeypatch.setenv("CERTWATCH_SCHEDULER_ENABLED", "false")

    settings = Settings()

    assert settings.check_interval == timedelta(seconds=30)
    assert settings.scheduler_enabled is False


def test_entries_require_name_path_and_type(config_file):
    config_file.write_text("certificates:\n  - name: ''\n    path: /a.pem\n    type: pem\n")
    with pytest.raises(ValidationError):
        Settings()


def test_unknown_type_is_not_a_config_error(config_file):
    config_file.write_text("certificates:\n  - name: odd\n    path: /a.bin\n    type: bogus\n")
    assert Settings().certificates[0].type == "bogus"


@pytest.mark.parametrize("bad_format", ["no directives", "", None])
def test_invalid_date_format_falls_back(bad_format):
    assert DashboardSettings(date_format=bad_format).date_format == DEFAULT_DATE_FORMAT


def test_missing_dashboard_values_fall_back():
    dashboard = DashboardSettings(warning_threshold=None, critical_threshold=None)
    assert dashboard.warning_threshold == timedelta(days=20)
    assert dashboard.critical_threshold == timedelta(days=3)


def test_numeric_interval_from_environment_is_seconds(config_file, monkeypatch):
    monkeypatch.setenv("CERTWATCH_CHECK_INTERVAL", "90")
    assert Settings().check_interval == timedelta(seconds=90)


def test_numeric_thresholds_are_seconds(config_file, monkeypatch):
    config_file.write_text("dashboard:\n  warning_threshold: '86400'\n")
    monkeypatch.setenv("CERTWATCH_DASHBOARD__CRITICAL_THRESHOLD", "3600")

    dashboard = Settings().dashboard

    assert dashboard.warning_threshold == timedelta(days=1)
    assert dashboard.critical_threshold == timedelta(hours=1)
