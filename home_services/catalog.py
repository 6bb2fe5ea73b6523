"""
Service card catalog.

Reads every file in the config directory as a TOML service card. Files that
cannot be read or parsed are logged and skipped so one bad card never takes
the dashboard down. A missing config directory is created on first read.
"""

import asyncio
import logging
import tomllib
from pathlib import Path

from pydantic import ValidationError

from .errors import CardError, CatalogError
from .models import ServiceCard, ServiceCatalog

logger = logging.getLogger(__name__)


def parse_service(text: str, source: str = "<string>") -> ServiceCard:
    """Parse one TOML document into a service card."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise CardError(str(e), context=f"parsing {source}") from e

    try:
        return ServiceCard.model_validate(data)
    except ValidationError as e:
        raise CardError(str(e), context=f"validating {source}") from e


def read_service_file(path: Path) -> ServiceCard | None:
    """Read a single card, returning None (after logging) if it is unusable."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Error reading `{path}`: {e}")
        return None

    try:
        return parse_service(text, source=str(path))
    except CardError as e:
        logger.warning(f"Failed to parse `{path}`: {e}")
        logger.debug(f"bad toml:\n`{text}`")
        return None


def read_services(cfg_dir: Path) -> ServiceCatalog:
    """
    Read all service cards from the config directory.

    Creates the directory (and returns an empty catalog) if it does not exist.

    Raises:
        CatalogError: if the directory is missing and cannot be created.
    """
    catalog = ServiceCatalog()

    if not cfg_dir.exists():
        try:
            cfg_dir.mkdir(parents=True)
        except OSError as e:
            raise CatalogError(f"Error creating cfg dir: {e}", context="reading cfg") from e
        logger.info(f"Created config directory {cfg_dir}")
        return catalog

    try:
        entries = sorted(cfg_dir.iterdir())
    except OSError as e:
        logger.warning(f"read dir failed for `{cfg_dir}`: {e}")
        return catalog

    for entry in entries:
        service = read_service_file(entry)
        if service is None:
            continue
        catalog.services.append(service)

    logger.debug(f"Read {len(catalog.services)} service(s) from {cfg_dir}")
    return catalog


async def read_services_async(cfg_dir: Path) -> ServiceCatalog:
    """Read the catalog without blocking the event loop."""
    return await asyncio.to_thread(read_services, cfg_dir)
