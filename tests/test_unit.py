"""Tests for the systemd unit."""

from pathlib import Path

import pytest

from home_services.unit import UnitSettings, parse_unit, render_unit, write_unit

DEPLOYED_UNIT = Path(__file__).parent.parent / "deploy" / "home-services.service"


@pytest.fixture
def settings() -> UnitSettings:
    return UnitSettings(
        name="home-services",
        user="home-services",
        group="home-services",
        install_dir=Path("/opt/home-services"),
        log_dir=Path("/var/log/home-services"),
        exec_start="/opt/home-services/venv/bin/python -m home_services serve",
    )


def test_restart_policy_and_fd_limit(settings):
    service = parse_unit(render_unit(settings))["Service"]

    assert service["Restart"] == ["on-failure"]
    assert service["RestartSec"] == ["10"]
    assert service["LimitNOFILE"] == ["1024"]
    assert service["Type"] == ["simple"]


def test_log_directory_is_prepared_before_start(settings):
    service = parse_unit(render_unit(settings))["Service"]

    assert service["PermissionsStartOnly"] == ["true"]
    assert service["ExecStartPre"] == [
        "/bin/mkdir -p /var/log/home-services",
        "/bin/chown home-services:home-services /var/log/home-services",
        "/bin/chmod 755 /var/log/home-services",
    ]


def test_process_and_logging_fields(settings):
    unit = parse_unit(render_unit(settings))

    assert unit["Unit"]["ConditionPathExists"] == ["/opt/home-services"]
    assert unit["Unit"]["After"] == ["network.target"]
    assert unit["Service"]["User"] == ["home-services"]
    assert unit["Service"]["Group"] == ["home-services"]
    assert unit["Service"]["WorkingDirectory"] == ["/opt/home-services"]
    assert unit["Service"]["ExecStart"] == ["/opt/home-services/venv/bin/python -m home_services serve"]
    assert unit["Service"]["StandardOutput"] == ["syslog"]
    assert unit["Service"]["StandardError"] == ["syslog"]
    assert unit["Service"]["SyslogIdentifier"] == ["home-services"]
    assert unit["Install"]["WantedBy"] == ["multi-user.target"]


def test_deployed_unit_matches_rendered_defaults(settings):
    assert parse_unit(DEPLOYED_UNIT.read_text()) == parse_unit(render_unit(settings))


def test_parse_rejects_keys_outside_sections():
    with pytest.raises(ValueError):
        parse_unit("Restart=always\n")


def test_write_unit(tmp_path: Path, settings):
    target = tmp_path / "systemd" / "home-services.service"

    success, message = write_unit(target, settings)

    assert success
    assert str(target) in message
    assert target.read_text() == render_unit(settings)


def test_write_unit_reports_failure(tmp_path: Path, settings):
    blocker = tmp_path / "file"
    blocker.write_text("in the way")

    success, message = write_unit(blocker / "home-services.service", settings)

    assert not success
    assert "Error writing systemd unit" in message
