"""
Data models for home services.

A service card is one entry on the dashboard. Each TOML file in the config
directory holds exactly one card as top-level keys.
"""

from pydantic import BaseModel, Field


class ServiceCard(BaseModel):
    """A service shown on the dashboard."""

    name: str = Field(..., description="Display name")
    url: str = Field(..., description="Where the card links to")
    desc: str = Field(..., description="One-line description")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "url": self.url,
            "desc": self.desc,
        }


class ServiceCatalog(BaseModel):
    """All cards read from the config directory, in file-name order."""

    services: list[ServiceCard] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return {"services": [s.to_dict() for s in self.services]}
