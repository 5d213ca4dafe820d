"""Shared pytest fixtures for ccode-reader tests."""

import pytest
from datasette.app import Datasette
from datasette.plugins import pm

import datasette_ccode_reader
import datasette_ccode_reader.plugin


@pytest.fixture
def datasette():
    """Create an in-memory Datasette instance with the plugin configured.

    Metadata lookups are off so route tests never touch the network.
    """
    plugin = datasette_ccode_reader.plugin
    registered_here = not (pm.is_registered(datasette_ccode_reader) or pm.is_registered(plugin))
    if registered_here:
        pm.register(plugin, name="datasette_ccode_reader_test")

    yield Datasette(
        memory=True,
        config={
            "plugins": {
                "datasette-ccode-reader": {
                    "fetch_metadata": False,
                }
            },
        },
    )

    if registered_here:
        pm.unregister(plugin)
