"""
Home Services - a live-updating dashboard of the services on a home network.

Renders service cards from TOML files, pushes change notifications over
server-sent events, and ships the systemd unit that supervises it.
"""

__version__ = "0.1.0"
