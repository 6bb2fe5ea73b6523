"""
systemd unit management.

Generates the unit file that supervises the dashboard. systemd owns the
process lifecycle: restart on failure after a fixed delay, a capped file
descriptor limit, and stdout/stderr redirected to syslog. Before the process
starts, systemd prepares the log directory as root (PermissionsStartOnly)
so the service user can write to it.

Install with:
    python -m home_services unit --output /etc/systemd/system/home-services.service
    sudo systemctl daemon-reload && sudo systemctl enable --now home-services
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import config

logger = logging.getLogger(__name__)

RESTART_SEC = 10
LIMIT_NOFILE = 1024


@dataclass
class UnitSettings:
    """Values substituted into the unit file."""

    name: str = field(default_factory=lambda: config.unit_name)
    description: str = "Home services dashboard"
    user: str = field(default_factory=lambda: config.unit_user)
    group: str = field(default_factory=lambda: config.unit_group)
    install_dir: Path = field(default_factory=lambda: config.unit_install_dir)
    log_dir: Path = field(default_factory=lambda: config.unit_log_dir)
    exec_start: str = field(default_factory=config.get_exec_start)
    restart_sec: int = RESTART_SEC
    limit_nofile: int = LIMIT_NOFILE


def render_unit(settings: UnitSettings = None) -> str:
    """Generate the unit file content."""
    if settings is None:
        settings = UnitSettings()

    log_dir = settings.log_dir
    lines = [
        "[Unit]",
        f"Description={settings.description}",
        f"ConditionPathExists={settings.install_dir}",
        "After=network.target",
        "",
        "[Service]",
        "Type=simple",
        f"User={settings.user}",
        f"Group={settings.group}",
        f"LimitNOFILE={settings.limit_nofile}",
        "",
        "Restart=on-failure",
        f"RestartSec={settings.restart_sec}",
        "",
        f"WorkingDirectory={settings.install_dir}",
        f"ExecStart={settings.exec_start}",
        "",
        "# Make sure the log directory exists and is owned by the service user",
        "PermissionsStartOnly=true",
        f"ExecStartPre=/bin/mkdir -p {log_dir}",
        f"ExecStartPre=/bin/chown {settings.user}:{settings.group} {log_dir}",
        f"ExecStartPre=/bin/chmod 755 {log_dir}",
        "StandardOutput=syslog",
        "StandardError=syslog",
        f"SyslogIdentifier={settings.name}",
        "",
        "[Install]",
        "WantedBy=multi-user.target",
    ]
    return "\n".join(lines) + "\n"


def parse_unit(text: str) -> dict[str, dict[str, list[str]]]:
    """
    Parse a unit file into {section: {key: [values]}}.

    Keys may repeat (ExecStartPre), so every key maps to a list in file order.
    """
    sections: dict[str, dict[str, list[str]]] = {}
    current = None
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(("#", ";")):
            continue
        if line.startswith("[") and line.endswith("]"):
            current = sections.setdefault(line[1:-1], {})
            continue
        if current is None or "=" not in line:
            raise ValueError(f"Malformed unit line: {raw!r}")
        key, _, value = line.partition("=")
        current.setdefault(key.strip(), []).append(value.strip())
    return sections


def write_unit(path: Path, settings: UnitSettings = None) -> tuple[bool, str]:
    """
    Write the unit file to the given path.

    Returns:
        Tuple of (success, message)
    """
    try:
        content = render_unit(settings)

        # Ensure parent directory exists
        path.parent.mkdir(parents=True, exist_ok=True)

        path.write_text(content)
        logger.info(f"Wrote systemd unit to {path}")

        return True, f"Unit written to {path}"

    except PermissionError:
        error = f"Permission denied writing to {path}"
        logger.error(error)
        return False, error
    except OSError as e:
        error = f"Error writing systemd unit: {e}"
        logger.error(error)
        return False, error
