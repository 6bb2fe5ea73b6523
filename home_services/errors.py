"""Exceptions raised while serving the dashboard."""


class HomeServicesError(Exception):
    """Base error carrying the context it happened in, shown on the error page."""

    def __init__(self, message: str, context: str = ""):
        super().__init__(message)
        self.message = message
        self.context = context


class CatalogError(HomeServicesError):
    """The configuration directory could not be prepared."""


class CardError(HomeServicesError):
    """A single service card file is not a valid card."""


class WatchError(HomeServicesError):
    """A filesystem watch could not be set up."""
