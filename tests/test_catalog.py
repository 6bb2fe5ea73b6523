"""Tests for reading service cards from the config directory."""

from pathlib import Path

import pytest

from home_services.catalog import parse_service, read_services, read_services_async
from home_services.errors import CardError, CatalogError

from .conftest import write_card


class TestParseService:
    def test_parses_top_level_keys(self):
        card = parse_service('name = "NAS"\nurl = "http://nas.local"\ndesc = "Storage"\n')
        assert card.name == "NAS"
        assert card.url == "http://nas.local"
        assert card.desc == "Storage"

    def test_ignores_unknown_keys(self):
        card = parse_service('name = "NAS"\nurl = "http://nas"\ndesc = "x"\nicon = "disk"\n')
        assert card.to_dict() == {"name": "NAS", "url": "http://nas", "desc": "x"}

    def test_rejects_bad_toml(self):
        with pytest.raises(CardError) as exc_info:
            parse_service("name = ", source="broken.toml")
        assert "broken.toml" in exc_info.value.context

    def test_rejects_missing_field(self):
        with pytest.raises(CardError):
            parse_service('name = "NAS"\nurl = "http://nas"\n')


class TestReadServices:
    def test_reads_cards_in_file_name_order(self, tmp_path: Path):
        write_card(tmp_path, "b.toml", "Beta", "http://b", "second")
        write_card(tmp_path, "a.toml", "Alpha", "http://a", "first")

        catalog = read_services(tmp_path)

        assert [s.name for s in catalog.services] == ["Alpha", "Beta"]

    def test_skips_unusable_entries(self, tmp_path: Path):
        write_card(tmp_path, "good.toml", "Good", "http://good", "works")
        (tmp_path / "bad.toml").write_text("this is not = = toml")
        (tmp_path / "partial.toml").write_text('name = "Partial"\n')
        (tmp_path / "subdir").mkdir()
        (tmp_path / "binary.toml").write_bytes(b"\xff\xfe\x00garbage")

        catalog = read_services(tmp_path)

        assert [s.name for s in catalog.services] == ["Good"]

    def test_missing_directory_is_created(self, tmp_path: Path):
        cfg = tmp_path / "new-cfg"

        catalog = read_services(cfg)

        assert catalog.services == []
        assert cfg.is_dir()

    def test_uncreatable_directory_raises(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(CatalogError) as exc_info:
            read_services(blocker / "cfg")
        assert exc_info.value.context == "reading cfg"

    @pytest.mark.asyncio
    async def test_async_read(self, tmp_path: Path):
        write_card(tmp_path, "one.toml", "One", "http://one", "only")

        catalog = await read_services_async(tmp_path)

        assert len(catalog.services) == 1
