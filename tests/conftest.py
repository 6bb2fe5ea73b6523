"""
Pytest configuration and fixtures.

Points the dashboard at a temporary config directory for every test.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from home_services.config import config


def write_card(directory: Path, filename: str, name: str, url: str, desc: str) -> Path:
    """Write a TOML service card."""
    path = directory / filename
    path.write_text(f'name = "{name}"\nurl = "{url}"\ndesc = "{desc}"\n')
    return path


@pytest.fixture
def cfg_dir(tmp_path: Path, monkeypatch) -> Path:
    """An empty config directory the app reads from."""
    directory = tmp_path / "cfg"
    directory.mkdir()
    monkeypatch.setattr(config, "cfg_dir", directory)
    return directory


@pytest.fixture
def client(cfg_dir: Path):
    """Test client with the app lifespan running."""
    from home_services.main import app

    with TestClient(app) as test_client:
        yield test_client
