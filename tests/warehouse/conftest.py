import pytest
from warehouse.catalogue import InMemoryCatalogue, set_catalogue
from warehouse.clients import InMemoryClientDirectory, set_client_directory


@pytest.fixture(scope="session")
def _warehouse_domain():
    from warehouse.domain import warehouse

    return warehouse


@pytest.fixture(autouse=True)
def _ctx(_warehouse_domain):
    """Push a fresh domain context for every test."""
    ctx = _warehouse_domain.domain_context()
    ctx.push()
    yield
    ctx.pop()


@pytest.fixture()
def catalogue():
    """Empty in-memory product catalogue installed as the active one."""
    instance = InMemoryCatalogue()
    set_catalogue(instance)
    return instance


@pytest.fixture()
def client_directory():
    """Empty in-memory client directory installed as the active one."""
    directory = InMemoryClientDirectory()
    set_client_directory(directory)
    return directory
