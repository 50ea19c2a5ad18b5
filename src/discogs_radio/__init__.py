"""Discogs Radio - plays a Discogs collection by resolving every track to streamable media."""

__version__ = "0.1.0"
