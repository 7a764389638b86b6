import os

import pytest

# Directory name -> marker applied to every test collected beneath it
LAYER_MARKERS = {
    "domain": pytest.mark.domain,
    "application": pytest.mark.application,
    "integration": pytest.mark.integration,
    "bdd": pytest.mark.bdd,
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Protean config overlay (domain.toml section) to run the suite against",
    )


def pytest_sessionstart(session):
    """Pick the ordering config overlay before the domain is initialized."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Mark each test with the layer its directory belongs to."""
    for item in items:
        layer = next((part for part in item.path.parts if part in LAYER_MARKERS), None)
        if layer is None:
            continue
        item.add_marker(LAYER_MARKERS[layer])
        if layer in ("integration", "bdd") and item.get_closest_marker("fast") is None:
            item.add_marker(pytest.mark.slow)
