"""Datasette plugin for reading Japanese book barcodes (ISBN + C-code)."""

from datasette_ccode_reader.plugin import register_routes

__all__ = [
    "register_routes",
]
