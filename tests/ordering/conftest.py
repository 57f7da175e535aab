import pytest
from ordering.catalogue import reset_catalog, set_catalog
from ordering.catalogue.memory_adapter import InMemoryCatalog
from ordering.identity import reset_user_directory, set_user_directory
from ordering.identity.memory_adapter import InMemoryUserDirectory
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def catalog():
    """A fresh product catalogue for every test."""
    catalog = InMemoryCatalog()
    set_catalog(catalog)
    yield catalog
    reset_catalog()


@pytest.fixture(autouse=True)
def users():
    """Two known users, each with a bearer token."""
    directory = InMemoryUserDirectory()
    directory.register("user-001", token="token-001")
    directory.register("user-002", token="token-002")
    set_user_directory(directory)
    yield directory
    reset_user_directory()


@pytest.fixture()
def camera(catalog):
    return catalog.register("prod-camera", "Vintage Camera", 150000.0, 10, brand="Leica")


@pytest.fixture()
def lens(catalog):
    return catalog.register("prod-lens", "Film Lens", 200000.0, 5)


@pytest.fixture()
def strap(catalog):
    return catalog.register("prod-strap", "Leather Strap", 12000.0, 20)
