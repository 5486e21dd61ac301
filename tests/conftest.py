import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Activate the fulfillment domain before collection.

    The pushed domain context makes ``current_domain`` available to every test.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("BLOB_STORE_ADAPTER", "fake")

    from fulfillment.domain import fulfillment

    fulfillment.init()
    fulfillment.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from fulfillment.domain import fulfillment
    from fulfillment.utils.db import drop_db, setup_db

    setup_db(fulfillment)

    yield

    drop_db(fulfillment)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Reset stores and adapters after every test."""
    yield

    from fulfillment.storage import reset_blob_store
    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
    reset_blob_store()
