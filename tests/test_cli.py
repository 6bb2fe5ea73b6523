"""Tests for the command line entry points."""

from pathlib import Path
from unittest import mock

from home_services.__main__ import build_parser, main


def test_unit_prints_to_stdout(capsys):
    assert main(["unit"]) == 0

    out = capsys.readouterr().out
    assert "RestartSec=10" in out
    assert "LimitNOFILE=1024" in out


def test_unit_writes_file(tmp_path: Path, capsys):
    target = tmp_path / "home-services.service"

    assert main(["unit", "--output", str(target)]) == 0

    assert "WantedBy=multi-user.target" in target.read_text()
    assert str(target) in capsys.readouterr().out


def test_no_command_serves():
    with mock.patch("home_services.__main__.uvicorn.run") as run:
        assert main([]) == 0

    run.assert_called_once()
    assert run.call_args.args[0] == "home_services.main:app"


def test_watch_targets_sse_endpoint():
    with mock.patch("home_services.reload.watch") as watch_stream, mock.patch("home_services.__main__.asyncio.run") as run:
        assert main(["watch", "http://dash.local:8080/"]) == 0

    run.assert_called_once()
    assert watch_stream.call_args.args[0] == "http://dash.local:8080/sse"


def test_parser_defaults():
    args = build_parser().parse_args(["serve", "--port", "9000"])

    assert args.port == 9000


DEPLOYED_UNIT = Path(__file__).parent.parent / "deploy" / "home-services.service"


def test_unit_check_accepts_shipped_unit(capsys):
    assert main(["unit", "--check", str(DEPLOYED_UNIT)]) == 0

    assert "matches the rendered unit" in capsys.readouterr().out


def test_unit_check_reports_tampered_unit(tmp_path: Path, capsys):
    tampered = tmp_path / "home-services.service"
    tampered.write_text(DEPLOYED_UNIT.read_text().replace("RestartSec=10", "RestartSec=30"))

    assert main(["unit", "--check", str(tampered)]) == 1

    out = capsys.readouterr().out
    assert "[Service] RestartSec: ['30'] != ['10']" in out


def test_unit_check_missing_file(tmp_path: Path, capsys):
    assert main(["unit", "--check", str(tmp_path / "absent.service")]) == 1

    assert "Cannot read unit" in capsys.readouterr().out
