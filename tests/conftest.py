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
    """Pytest hook to run before collecting tests.

    Select the config overlay before any domain is initialized.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering
    from protean.integrations.pytest import DomainFixture

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture()
def ordering_domain(ordering_bed):
    """The initialized ordering domain, emptied after the test.

    For tests that reach the domain through an adapter that pushes its own
    context (LocalOrderService, the FastAPI app).
    """
    from ordering.domain import ordering

    yield ordering

    with ordering_bed.domain_context():
        for _, provider in ordering.providers.items():
            provider._data_reset()
        ordering.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def run_around_tests():
    """Reset the process-wide adapter singletons after every test"""
    yield

    from ordering.auth import reset_verifier
    from ordering.stock import reset_stock
    from payments.gateway import reset_gateway

    reset_gateway()
    reset_verifier()
    reset_stock()
